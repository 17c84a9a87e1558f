"""Merge discovered profiles into an AWS config document."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, MutableMapping

from sso_profiles.auth import notify_console
from sso_profiles.models.profiles import DiscoveredProfile
from sso_profiles.utils.errors import StructuralError

logger = logging.getLogger(__name__)

# Section name -> ordered key/value pairs, e.g. a ConfigParser or a dict of dicts
ConfigDocument = MutableMapping[str, MutableMapping[str, "str | None"]]

SECTION_PREFIX = "profile "


class ConfigMerger:
    """Writes one `[profile ...]` section per discovered profile.

    Args:
        prefix: Prepended to every generated profile name.
        clean: Remove existing sections carrying this prefix before merging.
        notifier: Called once per merged profile.
    """

    def __init__(
        self,
        prefix: str = "",
        clean: bool = False,
        notifier: Callable[[str], None] = notify_console,
    ) -> None:
        self.prefix = prefix
        self.clean = clean
        self._notify = notifier

    def profile_name(self, profile: DiscoveredProfile) -> str:
        return f"{self.prefix}{profile.bare_name}"

    def section_name(self, profile_name: str) -> str:
        return f"{SECTION_PREFIX}{profile_name}"

    def merge(self, profiles: Iterable[DiscoveredProfile], config: ConfigDocument) -> list[str]:
        """Insert or overwrite a section for each profile, mutating config.

        Returns:
            The merged profile names in merge order.

        Raises:
            StructuralError: If the document rejects a removal or insertion.
                Sections merged before the failure stay in place.
        """
        if self.clean:
            removed = self.remove_stale(config)
            logger.info(f"Removed {len(removed)} stale section(s)")

        merged = []
        for profile in profiles:
            profile_name = self.profile_name(profile)
            self.replace_section(config, self.section_name(profile_name), profile.to_section())
            self._notify(f"[green]Profile[/green] [bold white]{profile_name}[/bold white]")
            merged.append(profile_name)
        return merged

    def remove_stale(self, config: ConfigDocument) -> list[str]:
        """Delete every section named `profile <prefix>...`; other sections stay."""
        stale_prefix = self.section_name(self.prefix)
        stale = [name for name in list(config) if name.startswith(stale_prefix)]
        for name in stale:
            try:
                del config[name]
            except (KeyError, TypeError, ValueError) as e:
                raise StructuralError(f"Cannot remove section '{name}': {e}") from e
        return stale

    @staticmethod
    def replace_section(
        config: ConfigDocument,
        section: str,
        values: MutableMapping[str, str | None],
    ) -> None:
        """Write a section, moving it to the end of the document.

        An existing section with the same name is deleted first, so a
        re-merged profile ends up after every other section instead of
        keeping its old position.
        """
        try:
            if section in config:
                del config[section]
            config[section] = values
        except (KeyError, TypeError, ValueError) as e:
            raise StructuralError(f"Cannot write section '{section}': {e}") from e
