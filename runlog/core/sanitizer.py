"""
Image sanitization for conversation logs before upload
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Pattern

IMAGE_PLACEHOLDER = "[Image uploaded]"
TOOL_IMAGE_PLACEHOLDER = "[Tool result: Image received]"


@dataclass
class SanitizationRule:
    """Rule for rewriting embedded data in free-form output"""
    name: str
    pattern: Pattern
    replacement: str
    enabled: bool = True

    def apply(self, text: str) -> str:
        if not self.enabled:
            return text
        return self.pattern.sub(self.replacement, text)


DEFAULT_OUTPUT_RULES = [
    SanitizationRule(
        name="base64_image_uri",
        pattern=re.compile(r'data:image/[^;]+;base64,[A-Za-z0-9+/=]+'),
        replacement="[Image]",
    ),
]


class ImageSanitizer:
    """
    Strip image payloads from JSONL conversation logs.

    - Image blocks in user messages become a text placeholder
    - Tool results carrying images keep their text plus a marker
    - Base64 image data URIs in tool output are replaced

    Lines that are blank or not JSON are returned unchanged.
    """

    def __init__(self, output_rules: Optional[List[SanitizationRule]] = None):
        self.output_rules = output_rules if output_rules is not None else list(DEFAULT_OUTPUT_RULES)

    def sanitize(self, content: str) -> str:
        """Sanitize a whole JSONL document"""
        return '\n'.join(self.sanitize_line(line) for line in content.split('\n'))

    def sanitize_line(self, line: str) -> str:
        if not line.strip():
            return line
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            return line

        if isinstance(data, dict):
            self._sanitize_entry(data)
        return json.dumps(data, ensure_ascii=False, separators=(',', ':'))

    def _sanitize_entry(self, data: Dict[str, Any]):
        message = data.get('message')
        if data.get('type') == 'user' and isinstance(message, dict):
            content = message.get('content')
            if isinstance(content, list):
                message['content'] = [self._sanitize_block(item) for item in content]

        tool_result = data.get('toolUseResult')
        if isinstance(tool_result, dict):
            output = tool_result.get('output')
            if isinstance(output, str) and 'data:image/' in output:
                for rule in self.output_rules:
                    output = rule.apply(output)
                tool_result['output'] = output

    def _sanitize_block(self, item: Any) -> Any:
        if not isinstance(item, dict):
            return item

        if item.get('type') == 'image':
            return {'type': 'text', 'text': IMAGE_PLACEHOLDER}

        nested = item.get('content')
        if item.get('type') == 'tool_result' and isinstance(nested, list):
            has_image = any(isinstance(c, dict) and c.get('type') == 'image' for c in nested)
            if has_image:
                text_parts = [
                    str(c.get('text') or '') for c in nested
                    if isinstance(c, dict) and c.get('type') == 'text'
                ]
                new_content = []
                if text_parts:
                    new_content.append({'type': 'text', 'text': '\n'.join(text_parts)})
                new_content.append({'type': 'text', 'text': TOOL_IMAGE_PLACEHOLDER})
                item['content'] = new_content

        return item
