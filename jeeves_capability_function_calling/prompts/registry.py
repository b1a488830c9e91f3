"""
Centralized prompt registry for the function-calling capability.

Prompts are contracts at the model boundary: each one is registered once,
under a name and a version, and rendered with an explicit context.
"""

import logging
from typing import Callable, Dict, Optional, Tuple
from dataclasses import dataclass
from datetime import datetime

logger = logging.getLogger(__name__)


def _version_key(version: str) -> Tuple[int, ...]:
    try:
        return tuple(int(part) for part in version.split("."))
    except ValueError:
        raise ValueError(f"Invalid prompt version '{version}'") from None


@dataclass
class PromptVersion:
    """A versioned prompt template."""
    name: str
    version: str
    template: str
    created_at: datetime
    description: str


class PromptRegistry:
    """
    Central registry for all LLM prompts.

    Usage:
        registry = PromptRegistry.get_instance()
        prompt = registry.get("function_calling.system", context={...})
    """

    _instance: Optional['PromptRegistry'] = None
    _prompts: Dict[str, Dict[str, PromptVersion]] = {}

    @classmethod
    def get_instance(cls) -> 'PromptRegistry':
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, prompt_version: PromptVersion) -> None:
        """Register a prompt version. A published version cannot change its template."""
        _version_key(prompt_version.version)
        existing = self._prompts.get(prompt_version.name, {}).get(prompt_version.version)
        if existing is not None and existing.template != prompt_version.template:
            raise ValueError(
                f"Prompt '{prompt_version.name}' version '{prompt_version.version}' "
                "is already registered with a different template"
            )
        if prompt_version.name not in self._prompts:
            self._prompts[prompt_version.name] = {}

        self._prompts[prompt_version.name][prompt_version.version] = prompt_version

        logger.info(
            "prompt_registered: name=%s version=%s",
            prompt_version.name,
            prompt_version.version,
        )

    def get(
        self,
        name: str,
        version: str = "latest",
        context: Optional[Dict] = None
    ) -> str:
        """
        Get a prompt by name and version.

        Args:
            name: Prompt name (e.g., "function_calling.system")
            version: Version string or "latest"
            context: Variables to interpolate into template

        Returns:
            Rendered prompt string
        """
        if name not in self._prompts:
            raise ValueError(f"Prompt '{name}' not registered")

        versions = self._prompts[name]

        if version == "latest":
            # "1.10" is newer than "1.9"
            version = max(versions.keys(), key=_version_key)

        if version not in versions:
            raise ValueError(f"Version '{version}' not found for prompt '{name}'")

        prompt_version = versions[version]

        logger.debug(
            "prompt_retrieved: name=%s version=%s has_context=%s",
            name,
            version,
            context is not None,
        )

        if context:
            try:
                return prompt_version.template.format(**context)
            except KeyError as e:
                raise ValueError(f"Prompt '{name}' needs context key {e}") from None
        return prompt_version.template

    def list_prompts(self) -> Dict[str, list]:
        """List all registered prompts and their versions."""
        return {
            name: sorted(versions.keys(), key=_version_key)
            for name, versions in self._prompts.items()
        }


def register_prompt(name: str, version: str, description: str):
    """Decorator to register a prompt."""
    def decorator(func: Callable[[], str]) -> Callable[[], str]:
        template = func()
        prompt_version = PromptVersion(
            name=name,
            version=version,
            template=template,
            created_at=datetime.now(),
            description=description,
        )
        PromptRegistry.get_instance().register(prompt_version)
        return func
    return decorator
