"""Minecraft server-list honeypot: fake handshake, status and login responses."""
