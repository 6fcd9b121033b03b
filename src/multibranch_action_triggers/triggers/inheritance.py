"""Push an organization's trigger property down to its branch-indexed projects."""

from __future__ import annotations

import logging

from multibranch_action_triggers.host.model import Container, ContainerKind
from multibranch_action_triggers.triggers.property import TriggerProperty

logger = logging.getLogger(__name__)


def _is_eligible_child(container: Container) -> bool:
    parent = container.parent
    return (
        container.kind is ContainerKind.BRANCH_INDEXED
        and parent is not None
        and parent.kind is ContainerKind.ORGANIZATION
    )


class PropertyPropagator:
    """Children share the organization's property instance, not a copy."""

    def on_container_created(self, container: Container) -> TriggerProperty | None:
        """Attach the organization's property to a new child that has none.

        Returns the attached property, or ``None`` when nothing was inherited.
        """

        if not _is_eligible_child(container) or container.trigger_property is not None:
            return None
        parent = container.parent
        inherited = parent.trigger_property if parent is not None else None
        if parent is None or inherited is None:
            return None

        container.trigger_property = inherited
        inherited.reconcile_all()
        logger.info(
            "Trigger property inherited from organization",
            extra={"container": container.full_name, "organization": parent.full_name},
        )
        return inherited

    def on_property_updated(self, organization: Container) -> list[str]:
        """Re-attach the organization's property to every eligible child.

        Returns the full names of the children that now reference it.
        """

        if organization.kind is not ContainerKind.ORGANIZATION:
            return []
        prop = organization.trigger_property
        if prop is None:
            return []

        updated: list[str] = []
        for child in organization.containers:
            if not _is_eligible_child(child):
                continue
            child.trigger_property = prop
            updated.append(child.full_name)

        prop.reconcile_all()
        logger.info(
            "Trigger property propagated",
            extra={"organization": organization.full_name, "children": updated},
        )
        return updated
