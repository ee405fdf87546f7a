"""Host-side control of the Razer Mamba over its 90-byte feature-report protocol."""

__version__ = "0.1.0"
