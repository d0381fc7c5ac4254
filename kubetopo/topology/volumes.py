"""Volume-mount correlation.

Turns a pod template's containers and volumes (plus, for StatefulSets, its
volume claim templates) into the storage bindings drawn as workload -> PVC
edges. Records are plain mappings shaped like the Kubernetes API JSON.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from kubetopo.models.topology import VolumeMount

Record = Mapping[str, Any]


def claim_name_for_replica(template_name: str, owner_name: str, ordinal: int) -> str:
    """Name of the claim a StatefulSet creates for one replica of a template.

    The controller names it ``<template>-<statefulset>-<ordinal>``.
    """
    return f"{template_name}-{owner_name}-{ordinal}"


def _claim_volumes(volumes: Sequence[Record]) -> dict[str, str]:
    """Map volume name -> claim name for volumes backed directly by a PVC."""
    result: dict[str, str] = {}
    for vol in volumes:
        if not isinstance(vol, Mapping):
            continue
        claim = vol.get("persistentVolumeClaim")
        claim_name = claim.get("claimName", "") if isinstance(claim, Mapping) else ""
        if vol.get("name") and claim_name:
            result[vol["name"]] = claim_name
    return result


def _container_mounts(containers: Sequence[Record]) -> list[Record]:
    mounts: list[Record] = []
    for container in containers:
        if not isinstance(container, Mapping):
            continue
        entries = container.get("volumeMounts")
        if isinstance(entries, list):
            mounts.extend(vm for vm in entries if isinstance(vm, Mapping))
    return mounts


def correlate(
    containers: Sequence[Record],
    volumes: Sequence[Record],
    claim_templates: Sequence[Record] | None = None,
    owner_name: str = "",
    replica_count: int = 0,
) -> list[VolumeMount]:
    """Compute every PVC-backed mount of a workload.

    Mounts of non-PVC volumes (configMap, secret, emptyDir, ...) carry no
    storage edge and are dropped. For each claim template, the mounts that
    reference the template name are repeated once per replica ordinal in
    ``[0, replica_count)`` with the synthesized claim name. A template no
    container mounts yields nothing. Entries that are not mappings are
    ignored.
    """
    volume_to_claim = _claim_volumes(volumes)
    mounts = _container_mounts(containers)

    result: list[VolumeMount] = []
    for vm in mounts:
        claim_name = volume_to_claim.get(vm.get("name", ""))
        if claim_name is not None:
            result.append(
                VolumeMount(
                    claim_name=claim_name,
                    mount_path=vm.get("mountPath", ""),
                    read_only=bool(vm.get("readOnly", False)),
                )
            )

    if not claim_templates or not owner_name:
        return result

    for template in claim_templates:
        metadata = template.get("metadata") if isinstance(template, Mapping) else None
        template_name = metadata.get("name", "") if isinstance(metadata, Mapping) else ""
        if not template_name:
            continue
        # (mount_path, read_only) pairs, in container order
        captured = [
            (vm.get("mountPath", ""), bool(vm.get("readOnly", False)))
            for vm in mounts
            if vm.get("name") == template_name
        ]
        for ordinal in range(replica_count):
            claim_name = claim_name_for_replica(template_name, owner_name, ordinal)
            for mount_path, read_only in captured:
                result.append(VolumeMount(claim_name=claim_name, mount_path=mount_path, read_only=read_only))

    return result
