"""
Training Protocols
==================
Named output-class sets and schedule helpers for training sessions.

A protocol is an ordered tuple of class names; the class index written to the
log is the position in that tuple.
"""

from typing import Dict, List, Optional, Tuple

from .sequencer import TrainingConfig


# =============================================================================
# PROTOCOL DEFINITIONS
# =============================================================================

REST_FIST_PROTOCOL = ('Rest', 'Fist')

WRIST_PROTOCOL = (
    'Rest',
    'Wrist_Flexion',
    'Wrist_Extension',
)

HAND_WRIST_PROTOCOL = (
    'Rest',
    'Wrist_Flexion',
    'Wrist_Extension',
    'Hand_Close',
    'Hand_Open',
)

FULL_PROTOCOL = (
    'Rest',
    'Wrist_Flexion',
    'Wrist_Extension',
    'Hand_Close',
    'Hand_Open',
    'Pronation',
    'Supination',
    'Radial_Deviation',
    'Ulnar_Deviation',
)


# =============================================================================
# PROTOCOL REGISTRY
# =============================================================================

PROTOCOLS: Dict[str, Tuple[str, ...]] = {
    'rest_fist': REST_FIST_PROTOCOL,
    'wrist': WRIST_PROTOCOL,
    'hand_wrist': HAND_WRIST_PROTOCOL,
    'full': FULL_PROTOCOL,
}


# =============================================================================
# PROTOCOL UTILITIES
# =============================================================================

def get_protocol(name: str) -> Tuple[str, ...]:
    """
    Get a protocol by name.

    Raises:
        ValueError: If protocol not found
    """
    if name not in PROTOCOLS:
        raise ValueError(f"Protocol '{name}' not found. Available: {list(PROTOCOLS.keys())}")
    return PROTOCOLS[name]


def list_protocols() -> List[str]:
    """List all available protocol names."""
    return list(PROTOCOLS.keys())


def make_training_config(protocol: str,
                         relax_time_ms: float,
                         contraction_time_ms: float,
                         collection_cycles: int) -> TrainingConfig:
    """Build a TrainingConfig whose classes are the named protocol's labels."""
    labels = get_protocol(protocol)
    return TrainingConfig(
        relax_time_ms=relax_time_ms,
        contraction_time_ms=contraction_time_ms,
        train_output_num=len(labels),
        collection_cycles=collection_cycles,
        output_labels=labels,
    )


def session_duration_ms(config: TrainingConfig) -> float:
    """Total protocol length: one relax + contraction phase per contraction event."""
    return config.phase_ms * config.total_contractions


def contraction_schedule(config: TrainingConfig) -> List[Tuple[int, int, str]]:
    """
    Contraction events in the order they happen (all classes per cycle, cycles
    repeating).

    Returns:
        List of (cycle, output, label) tuples
    """
    return [
        (cycle, output, config.label_name(output))
        for cycle in range(config.collection_cycles)
        for output in range(config.train_output_num)
    ]


def print_protocol_summary(config: TrainingConfig, name: Optional[str] = None):
    """Print a summary of the training protocol."""
    total_s = session_duration_ms(config) / 1000.0
    print(f"\n{'='*70}")
    print(f"{(name or 'training').upper()} PROTOCOL SUMMARY")
    print(f"{'='*70}")
    print(f"\nClasses: {config.train_output_num}")
    for output in range(config.train_output_num):
        print(f"  {output}. {config.label_name(output)}")
    print(f"Cycles: {config.collection_cycles}")
    print(f"Relax: {config.relax_time_ms:.0f} ms, Contraction: {config.contraction_time_ms:.0f} ms")
    print(f"Contraction events: {config.total_contractions}")
    print(f"Estimated duration: {total_s:.1f} seconds ({total_s/60:.1f} minutes)")
    print(f"{'='*70}\n")
