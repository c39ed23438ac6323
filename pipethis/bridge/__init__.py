"""Bridge layer between pipethis and the OpenPGP library.

Modules
-------
pgp_bridge
    Key ring parsing, detached signature verification (binary and
    ASCII-armored), and clearsigned document handling, backed by PGPy.

Nothing outside this package imports ``pgpy`` directly.
"""
