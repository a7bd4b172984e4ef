"""
Dummy Provider
==============
Simulated multi-channel EMG-like signal for running without hardware.
"""

import numpy as np


class DummyProvider:
    """
    Zero-argument provider returning one sine-plus-noise sample per call.

    Each channel gets its own frequency (20, 25, 30, ... Hz). Setting
    ``contracting`` multiplies the amplitude, which makes labelled training
    logs visibly different between phases.
    """

    def __init__(self,
                 channel_count: int = 8,
                 sample_rate: float = 1000.0,
                 amplitude: float = 50.0,
                 noise_level: float = 5.0,
                 contraction_gain: float = 4.0,
                 seed=None):
        """
        Args:
            channel_count: Number of values per sample
            sample_rate: Rate the provider is polled at (Hz), used to advance phase
            amplitude: Signal amplitude (microvolts)
            noise_level: Gaussian noise standard deviation (microvolts)
            contraction_gain: Amplitude multiplier while contracting
            seed: Random seed
        """
        self.channel_count = channel_count
        self.sample_rate = float(sample_rate)
        self.amplitude = amplitude
        self.noise_level = noise_level
        self.contraction_gain = contraction_gain
        self.contracting = False

        self._rng = np.random.default_rng(seed)
        self._freqs = 20.0 + 5.0 * np.arange(channel_count)
        self._phase = 0.0
        self.sample_count = 0

    def __call__(self) -> np.ndarray:
        gain = self.contraction_gain if self.contracting else 1.0
        signal = gain * self.amplitude * np.sin(2 * np.pi * self._freqs * self._phase)
        noise = self.noise_level * self._rng.standard_normal(self.channel_count)
        self._phase += 1.0 / self.sample_rate
        self.sample_count += 1
        return signal + noise
