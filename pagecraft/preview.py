"""Sandboxed live preview of generated pages."""

import html
import re
import time
from typing import Optional
from urllib.parse import urljoin, urlparse

from pagecraft.conversation import Message, Role
from pagecraft.logger import get_logger
from pagecraft.parser import GeneratedArtifact, ResponseParser

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://example.com/"

# Scripts run, but without allow-same-origin the frame gets an opaque origin:
# no host cookies, storage or DOM, and no top-level navigation.
SANDBOX_POLICY = "allow-scripts"
SANDBOX_CSP = f"sandbox {SANDBOX_POLICY}"

RESET_CSS = """html, body {
  margin: 0;
  padding: 0;
  min-height: 100%;
  overflow: auto;
}
* { box-sizing: border-box; }
img {
  max-width: 100%;
  height: auto;
  display: block;
}"""

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<base href="{base_url}">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<style>
{styles}
</style>
</head>
<body>
{body}
</body>
</html>"""

# Quoted or unquoted src values
_IMG_SRC = re.compile(
    r"""(<img\b[^>]*?(?<![\w-])src\s*=\s*)(?:(["'])(.*?)\2|([^\s"'=<>`]+))""",
    re.IGNORECASE | re.DOTALL,
)


def is_relative_url(url: str) -> bool:
    url = url.strip()
    return bool(url) and not urlparse(url).scheme and not url.startswith("//")


class PreviewRenderer:
    def __init__(self, base_url: str = DEFAULT_BASE_URL):
        self.base_url = base_url

    def rewrite_image_sources(self, markup: str) -> str:
        """Point relative <img src> paths at the preview origin."""

        def _rewrite(match):
            prefix, quote, quoted_src, bare_src = match.groups()
            src = quoted_src if quote else bare_src
            if not is_relative_url(src):
                return match.group(0)
            # Unquoted values come back quoted so the joined URL stays one attribute
            quote = quote or '"'
            return f"{prefix}{quote}{urljoin(self.base_url, src.strip())}{quote}"

        return _IMG_SRC.sub(_rewrite, markup)

    def render(self, artifact: GeneratedArtifact) -> str:
        styles = RESET_CSS if not artifact.css else f"{RESET_CSS}\n{artifact.css}"
        return DOCUMENT_TEMPLATE.format(
            base_url=html.escape(self.base_url, quote=True),
            styles=styles,
            body=self.rewrite_image_sources(artifact.html),
        )

    def embed(self, artifact: GeneratedArtifact, render_token: int) -> str:
        """Iframe markup for the preview.

        The element id carries the render token, so a new artifact always
        yields a new frame rather than reusing the previous one's state.
        """
        document = html.escape(self.render(artifact), quote=True)
        return (
            f'<iframe id="preview-{render_token}" data-render-token="{render_token}" '
            f'sandbox="{SANDBOX_POLICY}" referrerpolicy="no-referrer" '
            f'title="Preview" srcdoc="{document}"></iframe>'
        )


class RenderState:
    """Current preview epoch for one session."""

    def __init__(self, renderer: Optional[PreviewRenderer] = None):
        self.renderer = renderer or PreviewRenderer()
        self.token = 0
        self.artifact: Optional[GeneratedArtifact] = None
        self._parser = ResponseParser()

    def observe(self, message: Message) -> bool:
        """Rebuild the preview if ``message`` is an assistant reply with code.

        Returns True when a new render token was issued.
        """
        if message.role is not Role.ASSISTANT:
            return False
        artifact = self._parser.parse(message.content)
        if not artifact.has_code:
            return False

        self.artifact = artifact
        self.token = max(time.time_ns(), self.token + 1)
        logger.debug(f"Preview rebuilt with render token {self.token}")
        return True

    @property
    def has_preview(self) -> bool:
        return self.artifact is not None

    def document(self) -> Optional[str]:
        if self.artifact is None:
            return None
        return self.renderer.render(self.artifact)

    def embed(self) -> Optional[str]:
        if self.artifact is None:
            return None
        return self.renderer.embed(self.artifact, self.token)
