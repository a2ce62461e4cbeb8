"""Cerberus client.

Read and write secrets and files stored in Cerberus, with automatic token
acquisition from the environment or from AWS IAM identities.
"""

__version__ = "0.1.0"
__author__ = "Platform Engineering Team"
__license__ = "Apache-2.0"
