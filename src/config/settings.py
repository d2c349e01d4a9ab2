"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use BLOCKDOWN_ prefix (e.g., BLOCKDOWN_EAGER_TABS=true).

Settings can also be loaded from a .env file in the project root.
"""

from typing import Any, Dict, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use BLOCKDOWN_ prefix.

    Examples:
        BLOCKDOWN_EAGER_TABS=true
        BLOCKDOWN_PYGMENTS_STYLE=monokai
        BLOCKDOWN_CHART_KINDS='["echarts", "vega"]'
    """

    model_config = SettingsConfigDict(
        env_prefix="BLOCKDOWN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Span protection
    placeholder_prefix: str = Field(
        default="\x00SPAN_",
        description="Prefix for protected span placeholders (uses null byte to avoid collisions)",
    )

    placeholder_suffix: str = Field(
        default="\x00",
        description="Suffix for protected span and tag placeholders",
    )

    tag_placeholder_prefix: str = Field(
        default="\x00TAG_",
        description="Prefix for HTML tags masked while inline rules run",
    )

    link_placeholder_prefix: str = Field(
        default="\x00LINK_",
        description="Prefix for link destinations masked while mark rules run",
    )

    # Carrier nodes
    carrier_attribute: str = Field(
        default="data-blockdown",
        description="Reserved attribute marking a carrier node and naming its block kind",
    )

    payload_attribute: str = Field(
        default="data-payload",
        description="Attribute holding the percent-encoded JSON payload of a carrier node",
    )

    # Block presentation
    avatar_url_template: str = Field(
        default="https://mc-heads.net/avatar/{name}",
        description="URL template for the 'minecraft' chat avatar shorthand",
    )

    chart_kinds: List[str] = Field(
        default=["echarts"],
        description="Recognised chart kinds",
    )

    chart_default_kind: str = Field(
        default="echarts",
        description="Chart kind used when a chart block carries no type attribute",
    )

    eager_tabs: bool = Field(
        default=False,
        description="Realise every tab pane up front instead of on first activation",
    )

    # Baseline rendering
    markdown_extensions: List[str] = Field(
        default=["fenced_code", "tables", "sane_lists", "pymdownx.tilde"],
        description="Python-Markdown extensions used by the baseline renderer",
    )

    markdown_extension_configs: Dict[str, Dict[str, Any]] = Field(
        default={"pymdownx.tilde": {"subscript": False}},
        description="Per-extension options; subscript stays with the inline rules",
    )

    pygments_style: str = Field(
        default="default",
        description="Pygments style used for fenced code blocks",
    )

    code_collapse_lines: int = Field(
        default=20,
        description="Code blocks longer than this many lines are marked collapsible",
    )

    # Ordered lists
    list_indent_width: int = Field(
        default=4,
        description="Spaces per nesting level after ordered-list re-indentation",
    )

    renumber_lists: bool = Field(
        default=True,
        description="Overwrite rendered list numbers with the numbers written in the source",
    )

    # Caching and diagnostics
    cache_size: int = Field(
        default=128,
        description="Number of prepared documents kept by the text-stage memo cache",
    )

    debug_mode: bool = Field(
        default=False,
        description="Enable debug output during rendering",
    )

    def placeHolder_make(self, index: int) -> str:
        """
        Generate a placeholder string for the protected span at given index.

        Args:
            index: Zero-based index of the protected span

        Returns:
            Placeholder string (e.g., "\\x00SPAN_0\\x00")

        Example:
            >>> settings = AppSettings()
            >>> settings.placeHolder_make(0)
            '\\x00SPAN_0\\x00'
        """
        return f"{self.placeholder_prefix}{index}{self.placeholder_suffix}"

    def tagPlaceHolder_make(self, index: int) -> str:
        """Generate the placeholder for a masked HTML tag"""
        return f"{self.tag_placeholder_prefix}{index}{self.placeholder_suffix}"

    def linkPlaceHolder_make(self, index: int) -> str:
        """Generate the placeholder for a masked link destination"""
        return f"{self.link_placeholder_prefix}{index}{self.placeholder_suffix}"


# Singleton instance - import this in your code
appsettings = AppSettings()
