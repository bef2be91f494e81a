"""
School Storage

Object-storage organization layer for the school management platform:
path generation, bucket provisioning, retention cleanup and integrity
auditing on top of MinIO.
"""

__version__ = "1.0.0"
