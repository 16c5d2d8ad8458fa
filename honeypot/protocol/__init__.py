"""
Wire protocol codecs

varint.py
    VarInt encoding, decoding and sizing.
framing.py
    Length-prefixed packet frames over asyncio streams.
strings.py
    Length-prefixed UTF-8 strings and the PayloadReader cursor.
handshake.py
    The handshake packet that opens every connection.
"""
