"""Compare snapshots and decide what to copy and what to delete."""

from typing import Iterable, Sequence

from loguru import logger

from bucket_mirror.sync.utils import Delta, GuardResult, TreeSnapshot


def is_protected(key: str, protected: Iterable[str]) -> bool:
    """True when the key contains any protected name."""
    return any(name in key for name in protected)


def compute_delta(
    source: TreeSnapshot, target: TreeSnapshot, protected: Iterable[str] = ()
) -> Delta:
    """
    Three-way comparison of source and target.

    The source is the source of truth, but a target copy is only replaced
    when the source file is strictly newer.

    Args:
        source: Snapshot of the source tree
        target: Snapshot of the target bucket
        protected: Names that must never be deleted from the target

    Returns:
        Delta with added, changed and deleted paths. Shadowed target
        variants appear in deleted under their stored key.
    """
    protected = list(protected)
    added = []
    changed = []
    deleted = []

    for key, entry in source.items():
        existing = target.get(key)
        if existing is None:
            added.append(key)
        elif entry.modified > existing.modified:
            changed.append(key)

    for key, entry in target.items():
        if entry.is_folder or key in source:
            continue
        logger.debug(f"{key} is not a folder and is not in the source...")
        if is_protected(key, protected):
            logger.debug("...but is protected: keeping")
            continue
        logger.debug("...and is not protected: deleting")
        deleted.append(key)

    # case variants of a kept key are never written by a transfer
    for stored, entry in target.shadowed.items():
        if entry.is_folder or is_protected(entry.path, protected):
            continue
        logger.debug(f"{stored} is shadowed by {target.stored_key(entry.path)}: deleting")
        deleted.append(stored)

    delta = Delta(
        added=tuple(sorted(added)),
        changed=tuple(sorted(changed)),
        deleted=tuple(sorted(deleted)),
    )
    logger.info(
        f"Delta: {len(delta.added)} added, {len(delta.changed)} changed, "
        f"{len(delta.deleted)} deleted"
    )
    return delta


def guard_deletions(added: Sequence[str], deleted: Sequence[str]) -> GuardResult:
    """
    Withhold the whole deletion batch when it overlaps the added set.

    A key that is both new in the source and only in the target means the
    two listings disagree about the same path, so neither can be trusted for
    deletions in this run.
    """
    overlap = sorted(set(added) & set(deleted))
    if overlap:
        logger.error(
            f"Deletion guard: {len(overlap)} key(s) both added and deleted "
            f"(e.g. {overlap[0]}); skipping all {len(deleted)} deletions this run"
        )
        return GuardResult(deleted=(), suppressed=tuple(deleted), overlap=tuple(overlap))
    return GuardResult(deleted=tuple(deleted))
