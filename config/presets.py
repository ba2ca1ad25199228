"""
Predefined configuration presets.
"""
from typing import Dict, Any


class ConfigPresets:
    """Collection of predefined configuration presets."""

    @staticmethod
    def lenient() -> Dict[str, Any]:
        """Recover from failures by default: failed optional values become null."""
        return {
            'engine': {
                'default_policy': 'RESOLVER'
            },
            'logging': {
                'log_level': 'WARNING',
                'log_dir': 'logs'
            }
        }

    @staticmethod
    def strict() -> Dict[str, Any]:
        """Abort the operation on the first failure unless an entry says otherwise."""
        return {
            'engine': {
                'default_policy': 'THROW'
            },
            'logging': {
                'log_level': 'WARNING',
                'log_dir': 'logs',
                'enable_structured': True
            }
        }

    @staticmethod
    def debug() -> Dict[str, Any]:
        """Lenient policy with every recovered error and propagation logged."""
        return {
            'engine': {
                'default_policy': 'RESOLVER'
            },
            'logging': {
                'log_level': 'DEBUG',
                'log_dir': 'logs/debug',
                'enable_file': False,
                'enable_structured': False
            }
        }
