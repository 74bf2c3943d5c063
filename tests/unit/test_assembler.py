from datetime import date, time

from zoneboard.models import Customer, Job, Technician
from zoneboard.schedule.assembler import assemble_board, card_sort_key, estimate_minutes, to_card
from zoneboard.schedule.board import Bucket

DAY = date(2024, 6, 1)

ANA = Technician(id="t-ana", display_name="Ana Ruiz")
BEN = Technician(id="t-ben", display_name="Ben Okafor")
SMITH = Customer(id="c-smith", name="Smith Residence", city="Springfield")


def _job(job_id, zone=None, start=None, end=None, position=None, tech=None, status="scheduled"):
    return Job(
        id=job_id,
        customer_id=SMITH.id,
        customer=SMITH,
        technician_id=tech.id if tech else None,
        technician=tech,
        zone=zone,
        status=status,
        scheduled_date=DAY,
        scheduled_time_start=start,
        scheduled_time_end=end,
        position=position,
    )


def test_empty_day_has_all_zone_columns_and_no_unassigned():
    board = assemble_board([], DAY)
    assert [c.zone for c in board.columns] == ["N", "S", "E", "W", "Central"]
    assert [c.label for c in board.columns][0] == "North Zone"
    for column in board.columns:
        assert [b.key for b in column.buckets] == [Bucket.MORNING, Bucket.AFTERNOON, Bucket.EVENING, Bucket.ANY]
        assert column.total_jobs == 0
    assert board.total_jobs == 0
    assert board.unassigned_jobs == 0


def test_every_job_appears_exactly_once():
    jobs = [
        _job("a", "N", time(9), time(11), 1000),
        _job("b", "N", time(13), time(14), 1000),
        _job("c", "S"),
        _job("d", None, time(17), time(19)),
        _job("e", "Northwest", time(9), time(10)),
    ]
    board = assemble_board(jobs, DAY)
    seen = [card.id for column in board.columns for bucket in column.buckets for card in bucket.jobs]
    assert sorted(seen) == ["a", "b", "c", "d", "e"]
    assert board.total_jobs == 5


def test_unassigned_column_collects_missing_and_unknown_zones():
    board = assemble_board([_job("d", None, time(17), time(19)), _job("e", "Northwest")], DAY)
    unassigned = board.columns[-1]
    assert unassigned.zone is None
    assert unassigned.label == "Unassigned"
    assert len(unassigned.buckets) == 1
    assert unassigned.buckets[0].key is Bucket.ANY
    assert unassigned.buckets[0].label == "Unassigned Jobs"
    assert [c.id for c in unassigned.buckets[0].jobs] == ["d", "e"]
    assert board.unassigned_jobs == 2


def test_jobs_land_in_bucket_of_their_stored_window():
    board = assemble_board(
        [_job("m", "E", time(8), time(9)), _job("x", "E", time(21), time(22)), _job("z", "E")],
        DAY,
    )
    east = board.column("E")
    by_key = {b.key: [c.id for c in b.jobs] for b in east.buckets}
    assert by_key[Bucket.MORNING] == ["m"]
    assert by_key[Bucket.ANY] == ["x", "z"]


def test_cards_ordered_by_position_with_missing_last():
    jobs = [
        _job("late", "N", time(9), time(10), None),
        _job("second", "N", time(10), time(11), 2000),
        _job("first", "N", time(11), time(12), 1000),
        _job("early", "N", time(8), time(9), None),
    ]
    morning = assemble_board(jobs, DAY).column("N").buckets[0]
    assert [c.id for c in morning.jobs] == ["first", "second", "early", "late"]


def test_equal_positions_tie_break_on_start_then_id():
    jobs = [
        _job("b", "N", time(9), time(10), 1000),
        _job("a", "N", time(9), time(10), 1000),
        _job("c", "N", time(8), time(9), 1000),
    ]
    assert [j.id for j in sorted(jobs, key=card_sort_key)] == ["c", "a", "b"]


def test_estimates_and_aggregates():
    jobs = [
        _job("a", "N", time(9), time(10, 30), 1000, tech=ANA),
        _job("b", "N", time(13), time(15), 1000, tech=ANA),
        _job("c", "N", None, None, 1000, tech=BEN),
        _job("d", "N", time(17), time(17), 1000),
    ]
    north = assemble_board(jobs, DAY).column("N")
    minutes = {b.key: b.estimated_minutes for b in north.buckets}
    assert minutes == {Bucket.MORNING: 90, Bucket.AFTERNOON: 120, Bucket.EVENING: 120, Bucket.ANY: 120}
    assert north.total_jobs == 4
    assert north.total_minutes == 450

    capacity = {t.technician_id: t for t in north.tech_capacity}
    assert capacity["t-ana"].assigned_jobs == 2
    assert capacity["t-ana"].estimated_minutes == 210
    assert capacity["t-ana"].technician_name == "Ana Ruiz"
    assert capacity["t-ben"].estimated_minutes == 120
    assert len(capacity) == 2


def test_estimate_minutes_default():
    assert estimate_minutes(_job("a", "N", time(9), time(11))) == 120
    assert estimate_minutes(_job("b", "N", time(9), time(9, 45))) == 45
    assert estimate_minutes(_job("c", "N")) == 120


def test_card_carries_denormalized_fields():
    card = to_card(_job("a", "W", time(9), time(11), 1000, tech=ANA))
    assert card.customer_name == "Smith Residence"
    assert card.customer_city == "Springfield"
    assert card.technician_name == "Ana Ruiz"
    assert card.bucket is Bucket.MORNING
    assert card.time_window_label == "9:00 AM - 11:00 AM"


def test_card_without_customer_uses_fallback_name():
    job = Job(id="x", customer_id="missing", status="scheduled", scheduled_date=DAY)
    card = to_card(job)
    assert card.customer_name == "Unknown Customer"
    assert card.technician_name is None
    assert card.time_window_label == "Anytime"
