"""Board assembly: flat day job list -> zone columns -> buckets -> ordered cards.

Read-only. Jobs are grouped by their *stored* time window; nothing is
recomputed here. Every job in the input appears exactly once in the output:
jobs without a zone, or with a zone outside the known set, go to the
``Unassigned`` column, which is only present when it has cards.
"""

from __future__ import annotations

from datetime import date, time
from typing import Any, Iterable

from zoneboard.config import get_settings
from zoneboard.schedule.board import (
    BUCKET_ORDER,
    ZONE_ORDER,
    Bucket,
    Zone,
    bucket_for_times,
    bucket_label,
    parse_zone,
    zone_label,
)
from zoneboard.schedule.time import format_time_window, window_minutes
from zoneboard.schemas.board import BucketView, JobCard, TechCapacity, ZoneBoard, ZoneColumn


def estimate_minutes(job: Any) -> int:
    """Actual window length when both times are set, else the configured default."""
    minutes = window_minutes(job.scheduled_time_start, job.scheduled_time_end)
    if minutes is None or minutes <= 0:
        return get_settings().scheduling.default_duration_minutes
    return minutes


def card_sort_key(job: Any) -> tuple:
    """Position ascending, missing positions last, then start time, then id."""
    return (
        job.position is None,
        job.position if job.position is not None else 0.0,
        job.scheduled_time_start or time.max,
        job.id,
    )


def to_card(job: Any) -> JobCard:
    customer = getattr(job, "customer", None)
    return JobCard(
        id=job.id,
        customer_id=job.customer_id,
        customer_name=job.customer_name,
        customer_city=(customer.city if customer else "") or "",
        technician_id=job.technician_id,
        technician_name=job.technician_name,
        zone=job.zone,
        status=job.status,
        scheduled_date=job.scheduled_date,
        scheduled_time_start=job.scheduled_time_start,
        scheduled_time_end=job.scheduled_time_end,
        description=job.description,
        position=job.position,
        bucket=bucket_for_times(job.scheduled_time_start, job.scheduled_time_end),
        estimated_minutes=estimate_minutes(job),
        time_window_label=format_time_window(job.scheduled_time_start, job.scheduled_time_end),
    )


def _bucket_view(key: Bucket, cards: list[JobCard], label: str | None = None) -> BucketView:
    return BucketView(
        key=key,
        label=label or bucket_label(key),
        jobs=cards,
        count=len(cards),
        estimated_minutes=sum(c.estimated_minutes for c in cards),
    )


def _tech_capacity(buckets: list[BucketView]) -> list[TechCapacity]:
    capacity: dict[str, TechCapacity] = {}
    for bucket in buckets:
        for card in bucket.jobs:
            if not card.technician_id:
                continue
            entry = capacity.get(card.technician_id)
            if entry is None:
                entry = TechCapacity(
                    technician_id=card.technician_id,
                    technician_name=card.technician_name or "Unknown",
                )
                capacity[card.technician_id] = entry
            entry.assigned_jobs += 1
            entry.estimated_minutes += card.estimated_minutes
    return list(capacity.values())


def _column(zone: Zone | None, buckets: list[BucketView]) -> ZoneColumn:
    return ZoneColumn(
        zone=zone.value if zone is not None else None,
        label=zone_label(zone),
        buckets=buckets,
        total_jobs=sum(b.count for b in buckets),
        total_minutes=sum(b.estimated_minutes for b in buckets),
        tech_capacity=_tech_capacity(buckets),
    )


def assemble_board(jobs: Iterable[Any], board_date: date) -> ZoneBoard:
    """Group a single day's jobs into the zone board view."""
    grouped: dict[Zone, dict[Bucket, list[Any]]] = {
        zone: {bucket: [] for bucket in BUCKET_ORDER} for zone in ZONE_ORDER
    }
    unassigned: list[Any] = []
    total = 0

    for job in jobs:
        total += 1
        zone = parse_zone(job.zone)
        if zone is None:
            unassigned.append(job)
            continue
        bucket = bucket_for_times(job.scheduled_time_start, job.scheduled_time_end)
        grouped[zone][bucket].append(job)

    columns = []
    for zone in ZONE_ORDER:
        buckets = [
            _bucket_view(bucket, [to_card(j) for j in sorted(grouped[zone][bucket], key=card_sort_key)])
            for bucket in BUCKET_ORDER
        ]
        columns.append(_column(zone, buckets))

    if unassigned:
        cards = [to_card(j) for j in sorted(unassigned, key=card_sort_key)]
        columns.append(_column(None, [_bucket_view(Bucket.ANY, cards, label="Unassigned Jobs")]))

    return ZoneBoard(
        board_date=board_date,
        columns=columns,
        total_jobs=total,
        unassigned_jobs=len(unassigned),
    )
