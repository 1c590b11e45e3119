"""SentryCircle — family safety backend.

The API that SentryCircle's mobile app and guardian dashboard talk to:
accounts and tokens, families, children, devices, location reports,
and remote commands sent from guardians to a child's device.
"""

__version__ = "0.1.0"
