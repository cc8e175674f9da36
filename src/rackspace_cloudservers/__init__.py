"""Rackspace Cloud Servers client.

Client library for the Rackspace Cloud Servers v1.0 REST API: servers,
images, flavors, shared IP groups and account limits. Authenticates lazily
on the first call and reuses the session token for the client's lifetime.
"""

__version__ = "0.1.0"
