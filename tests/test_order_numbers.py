"""
Tests for order number allocation and counter initialization
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from dentallab.database import Base
from dentallab.models.order import Order, JobItem
from dentallab.models.sequence import Sequence
from dentallab.services.order_numbers import (
    allocate_order_number, counter_id_for, initialize_counters, parse_sequence
)

YEAR_2025 = datetime(2025, 2, 14)


class TestOrderNumberFormat:
    """Test cases for prefixes and parsing"""

    def test_counter_id_uses_category_prefix_and_year(self):
        assert counter_id_for("PRÓTESIS FIJA", YEAR_2025) == "PTF-25"
        assert counter_id_for("FLUJO DIGITAL", YEAR_2025) == "FLD-25"
        assert counter_id_for("Otra cosa", YEAR_2025) == "ORD-25"

    def test_parse_sequence(self):
        assert parse_sequence("ACR-25-0042") == 42
        assert parse_sequence("ACR-25-XX") is None
        assert parse_sequence("") is None


class TestAllocation:
    """Test cases for the atomic counter"""

    def test_allocates_distinct_increasing_numbers(self, db_session):
        numbers = [allocate_order_number(db_session, "ACRÍLICO", YEAR_2025) for _ in range(3)]
        db_session.commit()

        assert numbers == ["ACR-25-0001", "ACR-25-0002", "ACR-25-0003"]
        assert db_session.get(Sequence, "ACR-25").seq == 3

    def test_counters_are_independent_per_year(self, db_session):
        allocate_order_number(db_session, "ACRÍLICO", YEAR_2025)
        number = allocate_order_number(db_session, "ACRÍLICO", datetime(2026, 1, 2))
        assert number == "ACR-26-0001"

    def test_concurrent_allocation_never_repeats(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'counters.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(bind=engine)
        make_session = sessionmaker(bind=engine)

        def allocate_batch():
            numbers = []
            for _ in range(8):
                db = make_session()
                try:
                    numbers.append(allocate_order_number(db, "ACRÍLICO", YEAR_2025))
                    db.commit()
                finally:
                    db.close()
            return numbers

        try:
            with ThreadPoolExecutor(max_workers=8) as pool:
                batches = [pool.submit(allocate_batch) for _ in range(8)]
                numbers = [number for batch in batches for number in batch.result()]
        finally:
            engine.dispose()

        assert len(set(numbers)) == 64
        assert sorted(parse_sequence(number) for number in numbers) == list(range(1, 65))


class TestCounterInitialization:
    """Test cases for seeding counters from stored orders"""

    def _store(self, db_session, doctor, order_number):
        db_session.add(Order(
            order_number=order_number,
            doctor_id=doctor.id,
            patient_name="Luis Vera",
            cost=35,
            job_items=[JobItem(position=0, job_type="ACRÍLICO - Rebase Acrílico", unit_cost=35, units=1)],
        ))
        db_session.commit()

    def test_seeds_from_highest_existing_sequence(self, db_session, doctor):
        self._store(db_session, doctor, "ACR-25-0007")
        self._store(db_session, doctor, "ACR-25-0012")

        counters = initialize_counters(db_session, YEAR_2025)

        assert counters["ACR-25"] == 12
        assert counters["PTF-25"] == 0
        assert "ORD-25" in counters
        assert allocate_order_number(db_session, "ACRÍLICO", YEAR_2025) == "ACR-25-0013"

    def test_never_lowers_an_existing_counter(self, db_session, doctor):
        db_session.add(Sequence(id="ACR-25", seq=30))
        db_session.commit()
        self._store(db_session, doctor, "ACR-25-0012")

        counters = initialize_counters(db_session, YEAR_2025)

        assert counters["ACR-25"] == 30

    def test_raises_a_lagging_counter(self, db_session, doctor):
        db_session.add(Sequence(id="ACR-25", seq=2))
        db_session.commit()
        self._store(db_session, doctor, "ACR-25-0012")

        assert initialize_counters(db_session, YEAR_2025)["ACR-25"] == 12
