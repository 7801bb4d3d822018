"""Configuration management for the credential system."""

from .config import (SystemConfig, DigestConfig, IssuerConfig, ProverConfig,
                     RegistryConfig, load_config, save_config)

__all__ = ['SystemConfig', 'DigestConfig', 'IssuerConfig', 'ProverConfig',
           'RegistryConfig', 'load_config', 'save_config']
