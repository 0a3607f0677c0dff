"""NFT drop — phased, allowance-limited mint authority."""

__version__ = "0.1.0"
