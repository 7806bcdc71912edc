"""Prompt text and transcript assembly for landing page generation."""

from dataclasses import dataclass
from typing import List

from pagecraft.conversation import ConversationStore, Role
from pagecraft.templates import describe_template, resolve_template

system_prompt = """<role>
You are an expert web developer specializing in creating modern, responsive landing pages.
</role>

<guidelines>
Follow these guidelines strictly:

1. Always return complete, production-ready HTML and CSS code
2. Use semantic HTML5 and modern CSS (Flexbox/Grid)
3. Make it fully responsive (mobile-first approach)
4. Include all necessary meta tags and viewport settings
5. Structure code with these sections:
   - Header with navigation
   - Hero section
   - Key features/benefits
   - Call-to-action
   - Footer
6. Format code blocks with clear markers:
   - ```html for HTML
   - ```css for CSS
7. Current template style: {TEMPLATE}
8. Include brief explanations before each code block
</guidelines>

<output_format>
Return at most one ```html block and one ```css block. Put the opening marker on its own line.
Do not split the page across several files or blocks.
</output_format>"""

acknowledgment = """Understood! I'll create professional landing pages with:
- Clean, well-commented code
- Mobile-responsive design
- Properly formatted code blocks
- All necessary sections
Following the {TEMPLATE_KEY} template style"""


@dataclass(frozen=True)
class TranscriptEntry:
    role: str  # "user" or "assistant"
    content: str


class PromptBuilder:
    """Builds the transcript sent to the model for one generation call.

    The instruction/acknowledgment pair is rebuilt on every call and is never
    written back into the conversation.
    """

    def system_instruction(self, template_key) -> str:
        # str.replace keeps braces in the prompt body literal
        return system_prompt.replace("{TEMPLATE}", describe_template(template_key))

    def acknowledgment(self, template_key) -> str:
        return acknowledgment.replace("{TEMPLATE_KEY}", resolve_template(template_key).value)

    def build(self, template_key, conversation: ConversationStore) -> List[TranscriptEntry]:
        template = resolve_template(template_key)
        transcript = [
            TranscriptEntry(role="user", content=self.system_instruction(template)),
            TranscriptEntry(role="assistant", content=self.acknowledgment(template)),
        ]
        for message in conversation.all():
            role = "user" if message.role is Role.USER else "assistant"
            transcript.append(TranscriptEntry(role=role, content=message.content))
        return transcript
