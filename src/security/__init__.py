"""Security subsystem: CNG-style cryptographic transforms (see ``src.security.cng``)."""
