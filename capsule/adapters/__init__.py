"""Adapter package for Capsule API I/O.

Purpose:
    Hold the concrete implementations behind the domain ports: the HTTP
    transport, the request dispatcher, the XML codec and the custom field
    definitions cache.

Dependencies:
    ``requests`` for network I/O, ``json`` and ``xml.etree`` for encoding.

Call context:
    Wired together by ``capsule.app.client`` and exercised directly by tests.
"""
