"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use IGN_ prefix (e.g., IGN_MAX_INCLUDE_DEPTH=20).

Settings can also be loaded from a .env file in the working directory.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use IGN_ prefix.

    Examples:
        IGN_MAX_INCLUDE_DEPTH=20
        IGN_DEBUG_MODE=true
        IGN_BINARY_SNIFF_BYTES=1024
    """

    model_config = SettingsConfigDict(
        env_prefix="IGN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Directive engine configuration
    max_include_depth: int = Field(
        default=10,
        ge=1,
        description="Maximum nesting depth of @ign-include@ directives",
    )

    debug_mode: bool = Field(
        default=False,
        description="Log directive engine passes regardless of verbosity",
    )

    # Template layout
    template_config_file: str = Field(
        default="ign-template.json",
        description="Template manifest file name (never generated into output)",
    )

    config_dir: str = Field(
        default=".ign",
        description="Project configuration directory (never generated into output)",
    )

    var_file: str = Field(
        default="ign-var.json",
        description="Default variables file name",
    )

    # Binary detection
    binary_sniff_bytes: int = Field(
        default=512,
        ge=0,
        description="Leading bytes scanned for NUL when deciding if a file is binary",
    )

    binary_extensions: List[str] = Field(
        default=[
            # Images
            ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".svg",
            # Archives
            ".zip", ".tar", ".gz", ".bz2", ".xz", ".rar", ".7z",
            # Executables
            ".exe", ".dll", ".so", ".dylib", ".bin",
            # Media
            ".mp3", ".mp4", ".avi", ".mov", ".wav",
            # Documents
            ".pdf", ".doc", ".docx", ".xls", ".xlsx",
            # Fonts
            ".ttf", ".otf", ".woff", ".woff2",
        ],
        description="Extensions copied verbatim without directive processing",
    )

    def specialFile_is(self, path: str) -> bool:
        """
        Check whether a template-relative path is reserved

        The manifest file and anything under the configuration directory are
        never generated, whatever their contents.

        Example:
            >>> settings = AppSettings()
            >>> settings.specialFile_is("ign-template.json")
            True
            >>> settings.specialFile_is(".ign/ign-var.json")
            True
            >>> settings.specialFile_is("src/main.go")
            False
        """
        path = path.replace("\\", "/")
        if path == self.template_config_file or path.endswith("/" + self.template_config_file):
            return True
        return path == self.config_dir or path.startswith(self.config_dir + "/")


# Singleton instance - import this in your code
appsettings = AppSettings()
