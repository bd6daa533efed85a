"""Caller-owned render state: the last used theme and whether to apply it."""

from dataclasses import dataclass, field

from mermaid_render.theme import DEFAULT_PRESET, ThemeConfig, get_preset

from .lib import DiagramRequest


@dataclass
class RenderSession:
    """Remembers the theme between render calls.

    A session belongs to one caller (a document, a CLI run, a request
    handler). Nothing is shared between sessions.

    Attributes:
        theme: Theme applied to the next request.
        use_theme: When False, requests are rendered unthemed.
        last_backend: Backend that served the most recent render.
    """

    theme: ThemeConfig = field(default_factory=lambda: get_preset(DEFAULT_PRESET))
    use_theme: bool = True
    last_backend: str | None = None

    def remember(self, theme: ThemeConfig) -> None:
        """Make theme the one used by later requests."""
        self.theme = theme
        self.use_theme = True

    def request(self, text: str) -> DiagramRequest:
        """Build a request for text using the session theme.

        Args:
            text: Mermaid diagram text, passed through unmodified.

        Raises:
            ValueError: If text is empty or whitespace only.
        """
        if not text.strip():
            raise ValueError("Diagram text is empty")
        return DiagramRequest(text, self.theme if self.use_theme else None)
