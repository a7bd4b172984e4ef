"""Tests for the simulated signal provider."""

import numpy as np

from datalogger.dummy_provider import DummyProvider


class TestDummyProvider:

    def test_sample_shape(self):
        provider = DummyProvider(channel_count=4, seed=0)
        sample = provider()
        assert sample.shape == (4,)
        assert provider.sample_count == 1

    def test_seed_is_reproducible(self):
        a = DummyProvider(channel_count=3, seed=42)
        b = DummyProvider(channel_count=3, seed=42)
        for _ in range(5):
            np.testing.assert_array_equal(a(), b())

    def test_contraction_increases_amplitude(self):
        relaxed = DummyProvider(channel_count=2, noise_level=0.0, seed=1)
        contracting = DummyProvider(channel_count=2, noise_level=0.0, seed=1)
        contracting.contracting = True
        r = np.array([relaxed() for _ in range(200)])
        c = np.array([contracting() for _ in range(200)])
        np.testing.assert_allclose(c, r * contracting.contraction_gain)
        assert np.abs(r).max() <= relaxed.amplitude + 1e-9
