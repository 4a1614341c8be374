"""
Application Gateway deployer.

Provisions and inspects an Azure Application Gateway per environment from
JSON configuration, driving the Azure control plane through the az CLI.
"""

__version__ = "0.1.0"
