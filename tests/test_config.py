"""Tests for configuration loading."""

import tempfile
import unittest
from pathlib import Path

import yaml

from procsim import Environment
from procsim.configs import (
    DEFAULT_CONFIG_PATH,
    load_config,
    load_default_config,
    merge_configs,
    resolve_config,
)


class TestConfig(unittest.TestCase):
    """Test cases for configuration helpers."""

    def test_default_config(self):
        """Test the bundled defaults load."""
        self.assertTrue(DEFAULT_CONFIG_PATH.exists())
        config = load_default_config()

        self.assertEqual(config['simulation']['initial_time'], 0.0)
        self.assertEqual(config['simulation']['failure_report'], 'log')
        self.assertFalse(config['simulation']['abort_on_failure'])
        self.assertEqual(config['resources']['discipline'], 'fifo')

    def test_load_config(self):
        """Test loading a YAML file."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "sim.yaml"
            with open(path, 'w') as f:
                yaml.dump({'simulation': {'random_seed': 5}}, f)

            config = load_config(str(path))

        self.assertEqual(config, {'simulation': {'random_seed': 5}})

    def test_merge_configs(self):
        """Test nested dictionaries merge key by key."""
        base = {'simulation': {'random_seed': 1, 'initial_time': 0.0}, 'logging': {'level': 'INFO'}}
        override = {'simulation': {'random_seed': 2}}

        merged = merge_configs(base, override)

        self.assertEqual(merged['simulation'], {'random_seed': 2, 'initial_time': 0.0})
        self.assertEqual(merged['logging'], {'level': 'INFO'})
        self.assertEqual(base['simulation']['random_seed'], 1)

    def test_resolve_rejects_bad_values(self):
        """Test unsupported option values are rejected."""
        with self.assertRaises(ValueError):
            resolve_config({'simulation': {'failure_report': 'email'}})
        with self.assertRaises(ValueError):
            resolve_config({'simulation': {'initial_time': -1}})
        with self.assertRaises(ValueError):
            resolve_config({'resources': {'discipline': 'lifo'}})

    def test_environment_uses_config(self):
        """Test the environment picks up merged settings."""
        env = Environment({
            'simulation': {'initial_time': 12.5, 'failure_report': 'ignore'},
            'logging': {'level': 'CRITICAL'},
        })

        self.assertEqual(env.now, 12.5)
        self.assertEqual(env.failure_report, 'ignore')
        self.assertEqual(env.config['resources']['discipline'], 'fifo')

    def test_progress_bar_run(self):
        """Test a run with the progress bar enabled completes."""
        env = Environment({
            'simulation': {'show_progress': True},
            'logging': {'level': 'CRITICAL'},
        })
        env.timeout(3)
        env.run(until=5)

        self.assertEqual(env.now, 5.0)


if __name__ == '__main__':
    unittest.main()
