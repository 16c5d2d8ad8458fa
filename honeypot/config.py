"""
Honeypot configuration management
"""
from pathlib import Path
from typing import Optional
from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Honeypot settings, read from the environment or a .env file"""

    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    # Listener
    address: str = "0.0.0.0:25565"

    # Advertised server
    kick_message: str = "You are not Whitelisted on this Server"
    motd: str = "A Minecraft Server"
    protocol_version: int = 772
    protocol_text: str = "1.21.7"
    max_slots: int = 20

    # Notification destinations (unset disables the path)
    webhook_ping: Optional[AnyHttpUrl] = None
    webhook_kick: Optional[AnyHttpUrl] = None
    webhook_timeout_sec: float = 10.0

    # Connection limits
    connection_timeout_sec: Optional[float] = 30.0
    max_frame_length: int = 2097151  # largest length a 3-byte VarInt can carry

    # Logging (relative paths resolve against the working directory)
    log_dir: Path = Path("logs")
    log_level: str = "INFO"


settings = Settings()
