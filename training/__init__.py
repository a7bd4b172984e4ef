"""
Training Data Collection Module
===============================

Supervised-training data collection on top of the datalogger sampling engine.

Main components:
- sequencer: Relax/contract protocol state machine
- protocols: Named class-label sets
- setup_training: Configuration
- training_session: Sampler + sequencer orchestration, command line

Quick Start:
    1. Edit configuration in setup_training.py
    2. Run: python -m training.training_session
"""

__version__ = '0.1.0'

# Lazy imports; submodules load on first attribute access
__all__ = [
    'TrainingConfig',
    'TrainingPhase',
    'TrainingStatus',
    'TrainingSequencer',
    'TrainingSession',
    'get_protocol',
    'list_protocols',
    'make_training_config',
    'contraction_schedule',
    'session_duration_ms',
    'PROTOCOLS',
]


def __getattr__(name):
    """Lazy import of module components."""
    if name in ['TrainingConfig', 'TrainingPhase', 'TrainingStatus', 'TrainingSequencer']:
        from . import sequencer
        return getattr(sequencer, name)
    elif name == 'TrainingSession':
        from .training_session import TrainingSession
        return TrainingSession
    elif name in ['get_protocol', 'list_protocols', 'make_training_config',
                  'contraction_schedule', 'session_duration_ms', 'PROTOCOLS']:
        from . import protocols
        return getattr(protocols, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
