"""Prompt template service for loading and rendering markdown prompts with variable substitution."""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Set

import yaml

# Prompts shipped with the package
BUILTIN_PROMPTS_DIR = Path(__file__).parent / "templates"


@dataclass
class PromptTemplate:
    """A prompt template that supports variable substitution."""

    content: str
    variables: Set[str]
    metadata: Dict[str, Any]

    @classmethod
    def from_string(cls, content: str, metadata: Optional[Dict[str, Any]] = None) -> "PromptTemplate":
        """Create a prompt template from a string.

        Args:
            content: The prompt content with {{variable}} placeholders
            metadata: Optional metadata for the prompt

        Returns:
            PromptTemplate instance
        """
        variables = cls._extract_variables(content)
        return cls(content=content, variables=variables, metadata=metadata or {})

    @classmethod
    def from_file(cls, file_path: Path) -> "PromptTemplate":
        """Load a prompt template from a markdown file.

        Args:
            file_path: Path to the markdown file

        Returns:
            PromptTemplate instance

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the frontmatter is not valid YAML
        """
        if not file_path.exists():
            raise FileNotFoundError(f"Prompt file not found: {file_path}")

        content = file_path.read_text(encoding="utf-8")

        metadata = {}
        if content.startswith("---"):
            try:
                parts = content.split("---", 2)
                if len(parts) >= 3:
                    metadata = yaml.safe_load(parts[1]) or {}
                    content = parts[2].strip()
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML frontmatter in {file_path}: {e}")

        return cls.from_string(content, metadata)

    @staticmethod
    def _extract_variables(content: str) -> Set[str]:
        """Extract {{variable_name}} placeholders from template content."""
        return set(re.findall(r"\{\{(\w+)\}\}", content))

    def render(self, variables: Dict[str, Any]) -> str:
        """Render the template with provided variables.

        Substitution is a single pass, so values containing placeholder
        syntax (user text, tool payloads) are never expanded.

        Raises:
            ValueError: If required variables are missing
        """
        missing = self.variables - set(variables.keys())
        if missing:
            raise ValueError(f"Missing required variables: {missing}")

        def substitute(match: "re.Match[str]") -> str:
            name = match.group(1)
            if name in variables:
                return str(variables[name])
            return match.group(0)

        return re.sub(r"\{\{(\w+)\}\}", substitute, self.content)


class PromptService:
    """Service for managing and loading prompt templates."""

    def __init__(self, base_path: Optional[Path] = None):
        """Initialize the prompt service.

        Args:
            base_path: Base directory for loading prompts (defaults to the
                prompts shipped with the package)
        """
        self.base_path = base_path or BUILTIN_PROMPTS_DIR
        self._cache: Dict[str, PromptTemplate] = {}

    def load_prompt(self, name: str, use_cache: bool = True) -> PromptTemplate:
        """Load a prompt template by name.

        Args:
            name: Name of the prompt (relative path without .md extension)
            use_cache: Whether to use cached prompts

        Raises:
            FileNotFoundError: If the prompt file doesn't exist
        """
        if use_cache and name in self._cache:
            return self._cache[name]

        possible_paths = [
            self.base_path / f"{name}.md",
            self.base_path / f"{name}.prompt.md",
        ]

        for path in possible_paths:
            if path.exists():
                prompt = PromptTemplate.from_file(path)
                if use_cache:
                    self._cache[name] = prompt
                return prompt

        raise FileNotFoundError(f"Prompt not found: {name}")

    def render_prompt(self, name: str, variables: Dict[str, Any]) -> str:
        """Load and render a prompt template."""
        return self.load_prompt(name).render(variables)
