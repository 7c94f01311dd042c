"""Registry mapping school ids to their automation scripts."""

from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from school_auto_apply.engine.context import ExecutionContext
from school_auto_apply.engine.models import AutomationResult
from school_auto_apply.scripts import (
    AutomationScript, DscHkis2025Script, DscInternationalSchoolScript, ExampleSchoolScript
)
from school_auto_apply.utils.logging import get_logger

logger = get_logger(__name__)

# Adding a school means adding its script class here.
DEFAULT_SCRIPTS: Tuple[AutomationScript, ...] = (
    ExampleSchoolScript(),
    DscHkis2025Script(),
    DscInternationalSchoolScript(),
)


def not_implemented_result(school_id: str) -> AutomationResult:
    return AutomationResult.failed(
        message=f"No automation script registered for {school_id} (not implemented)"
    )


class ScriptRegistry:
    """
    Read-only lookup of automation scripts by school id.

    Built once at startup; the underlying mapping cannot be modified.
    """

    def __init__(self, scripts: Mapping[str, AutomationScript]):
        self.logger = logger.bind(component="script_registry")
        for key, script in scripts.items():
            if script.id != key:
                self.logger.warning(
                    "Script id does not match its registry key",
                    registry_key=key,
                    script_id=script.id
                )
        self._scripts: Mapping[str, AutomationScript] = MappingProxyType(dict(scripts))

    @classmethod
    def from_scripts(
        cls,
        scripts: Iterable[AutomationScript],
        enabled: Optional[Iterable[str]] = None
    ) -> "ScriptRegistry":
        """
        Key each script by its own id.

        Args:
            scripts: Script instances
            enabled: Optional allow-list of school ids
        """
        allowed = set(enabled) if enabled is not None else None
        table: Dict[str, AutomationScript] = {}
        for script in scripts:
            if allowed is not None and script.id not in allowed:
                continue
            if script.id in table:
                logger.warning("Duplicate script id, keeping the first", script_id=script.id)
                continue
            table[script.id] = script
        return cls(table)

    @property
    def scripts(self) -> Mapping[str, AutomationScript]:
        return self._scripts

    def __contains__(self, school_id: object) -> bool:
        return school_id in self._scripts

    def __len__(self) -> int:
        return len(self._scripts)

    def get(self, school_id: str) -> Optional[AutomationScript]:
        return self._scripts.get(school_id)

    def ids(self) -> List[str]:
        return sorted(self._scripts)

    def describe(self) -> List[Dict[str, Any]]:
        return [self._scripts[school_id].describe() for school_id in self.ids()]

    async def dispatch(self, ctx: ExecutionContext) -> AutomationResult:
        """Run the script registered for the payload's school id; never raises."""
        school_id = ctx.payload.school_id
        script = self.get(school_id)
        if script is None:
            self.logger.warning("No script registered", school_id=school_id)
            return not_implemented_result(school_id)

        ctx.logger.info("Dispatching automation script", script=script.id, script_name=script.name)
        return await script.run(ctx)


def build_default_registry(enabled: Optional[Iterable[str]] = None) -> ScriptRegistry:
    return ScriptRegistry.from_scripts(DEFAULT_SCRIPTS, enabled=enabled)
