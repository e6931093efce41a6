"""
DOODi token lifecycle tools: create, airdrop, burn and finalize an SPL token
"""

__version__ = "0.1.0"
