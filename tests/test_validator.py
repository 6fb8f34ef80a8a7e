"""
Claim validator tests against the in-process data service fake.
"""

import httpx
import pytest

from bitmap_oci.core.errors import BitmapRangeError

ROOT = "rooti0"
BITMAP = 177700
SAT = 1234567890


@pytest.fixture
def bitmap(ordinals):
    """Bitmap 177700 with six transactions and no children yet."""
    ordinals.add_bitmap(BITMAP, sat=SAT, inscription_id=ROOT, transaction_count=6)
    ordinals.set_children(ROOT, [])
    return ordinals


def add_children(ordinals, children):
    """``children``: list of (id, content, height)."""
    for child_id, content, height in children:
        ordinals.add_child(child_id, content, height)
    ordinals.set_children(ROOT, [c[0] for c in children])


class TestValidateBitmap:

    @pytest.mark.asyncio
    async def test_valid_without_children(self, validator, bitmap):
        result = await validator.validate_bitmap(BITMAP)

        assert result.status == "valid"
        assert result.details.bitmap_number == BITMAP
        assert result.details.inscription_id == ROOT
        assert result.details.valid_parcels == ()
        assert result.details.all_children == ()

    @pytest.mark.asyncio
    async def test_no_children_endpoint_means_no_children(self, validator, bitmap):
        del bitmap.routes[f"/r/children/{ROOT}"]
        result = await validator.validate_bitmap(BITMAP)
        assert result.status == "valid"
        assert result.details.all_children == ()

    @pytest.mark.asyncio
    async def test_matching_expected_id(self, validator, bitmap):
        result = await validator.validate_bitmap(BITMAP, expected_id=ROOT)
        assert result.status == "valid"

    @pytest.mark.asyncio
    async def test_identifier_mismatch(self, validator, bitmap):
        result = await validator.validate_bitmap(BITMAP, expected_id="impostori0")

        assert result.status == "invalid"
        assert "Identifier mismatch" in result.message
        assert result.details.inscription_id == ROOT
        assert f"/content/{ROOT}" not in bitmap.calls

    @pytest.mark.asyncio
    async def test_content_must_name_the_bitmap(self, validator, ordinals):
        ordinals.add_bitmap(BITMAP, sat=SAT, inscription_id=ROOT, content="177701.bitmap")
        result = await validator.validate_bitmap(BITMAP)
        assert result.status == "invalid"
        assert result.message == "Invalid bitmap content"

    @pytest.mark.asyncio
    async def test_content_must_end_with_suffix(self, validator, ordinals):
        ordinals.add_bitmap(BITMAP, sat=SAT, inscription_id=ROOT, content="177700.bitmap.txt")
        result = await validator.validate_bitmap(BITMAP)
        assert result.status == "invalid"

    @pytest.mark.asyncio
    async def test_out_of_range_raises(self, validator, ordinals):
        with pytest.raises(BitmapRangeError):
            await validator.validate_bitmap(840000)
        with pytest.raises(BitmapRangeError):
            await validator.validate_bitmap(-1)
        assert ordinals.calls == []

    @pytest.mark.asyncio
    async def test_unresolvable_bitmap_is_unknown(self, validator, ordinals):
        # Index page present, but no record on the sat.
        ordinals.add_bitmap(BITMAP, sat=SAT, inscription_id=ROOT)
        del ordinals.routes[f"/r/sat/{SAT}/at/0"]

        result = await validator.validate_bitmap(BITMAP)

        assert result.status == "unknown"
        assert result.details.bitmap_number == BITMAP

    @pytest.mark.asyncio
    async def test_children_failure_is_unknown(self, validator, bitmap):
        bitmap.add_error(f"/r/children/{ROOT}", 500)
        result = await validator.validate_bitmap(BITMAP)
        assert result.status == "unknown"

    @pytest.mark.asyncio
    async def test_parcels_and_tiebreak(self, validator, bitmap):
        add_children(bitmap, [
            ("c-late", "0.177700.bitmap", 800010),
            ("c-early", "0.177700.bitmap", 800001),
            ("b-same", "1.177700.bitmap", 800005),
            ("a-same", "1.177700.bitmap", 800005),
            ("other-block", "2.177701.bitmap", 700000),
            ("too-big", "6.177700.bitmap", 700000),
            ("junk", "hello", 700000),
        ])

        result = await validator.validate_bitmap(BITMAP)

        assert result.status == "valid"
        assert [(p.parcel_number, p.id) for p in result.details.valid_parcels] == [
            (0, "c-early"),
            (1, "a-same"),
        ]
        assert result.details.all_children == (
            "c-late", "c-early", "b-same", "a-same", "other-block", "too-big", "junk",
        )
        assert result.details.failed_children == ()
        # Rejected children never need metadata.
        assert "/r/inscription/junk" not in bitmap.calls
        assert "/r/inscription/too-big" not in bitmap.calls

    @pytest.mark.asyncio
    async def test_winner_independent_of_child_order(self, validator, bitmap):
        children = [
            ("b", "3.177700.bitmap", 800000),
            ("a", "3.177700.bitmap", 800000),
            ("c", "3.177700.bitmap", 799999),
        ]
        add_children(bitmap, children)
        forward = await validator.validate_bitmap(BITMAP)

        bitmap.set_children(ROOT, [c[0] for c in reversed(children)])
        backward = await validator.validate_bitmap(BITMAP)

        assert forward.details.valid_parcels == backward.details.valid_parcels
        assert forward.details.valid_parcels[0].id == "c"

    @pytest.mark.asyncio
    async def test_missing_block_info_leaves_parcels_unbounded(self, validator, ordinals):
        ordinals.add_bitmap(BITMAP, sat=SAT, inscription_id=ROOT)
        add_children(ordinals, [("big", "5000.177700.bitmap", 800000)])

        result = await validator.validate_bitmap(BITMAP)

        assert result.status == "valid"
        assert [p.id for p in result.details.valid_parcels] == ["big"]

    @pytest.mark.asyncio
    async def test_block_zero_has_no_bound(self, validator, ordinals):
        ordinals.add_bitmap(0, sat=1000, inscription_id="genesisi0")
        ordinals.add_child("p", "99999.0.bitmap", 800000)
        ordinals.set_children("genesisi0", ["p"])

        result = await validator.validate_bitmap(0)

        assert result.status == "valid"
        assert [p.parcel_number for p in result.details.valid_parcels] == [99999]
        assert "/r/blockinfo/0" not in ordinals.calls

    @pytest.mark.asyncio
    async def test_partial_child_failure(self, validator, ordinals):
        ordinals.add_bitmap(BITMAP, sat=SAT, inscription_id=ROOT, transaction_count=100)
        children = [(f"c{i}", f"{i}.177700.bitmap", 800000 + i) for i in range(50)]
        add_children(ordinals, children)
        ordinals.add_error("/content/c13", 500)

        result = await validator.validate_bitmap(BITMAP)

        assert result.status == "valid"
        assert len(result.details.valid_parcels) == 49
        assert "c13" not in [p.id for p in result.details.valid_parcels]
        assert "c13" not in result.details.all_children
        assert len(result.details.all_children) == 49
        assert result.details.failed_children == ("c13",)

    @pytest.mark.asyncio
    async def test_metadata_failure_drops_child(self, validator, bitmap):
        add_children(bitmap, [
            ("a", "2.177700.bitmap", 800000),
            ("b", "2.177700.bitmap", 800100),
        ])
        bitmap.add_error("/r/inscription/a", 503)

        result = await validator.validate_bitmap(BITMAP)

        assert [p.id for p in result.details.valid_parcels] == ["b"]
        assert result.details.failed_children == ("a",)

    @pytest.mark.asyncio
    async def test_child_timeout_drops_child(self, validator, bitmap):
        add_children(bitmap, [
            ("slow", "1.177700.bitmap", 800000),
            ("ok", "2.177700.bitmap", 800000),
        ])
        bitmap.add_exception("/content/slow", httpx.ReadTimeout("timed out"))

        result = await validator.validate_bitmap(BITMAP)

        assert result.status == "valid"
        assert [p.id for p in result.details.valid_parcels] == ["ok"]
        assert result.details.failed_children == ("slow",)
        assert result.details.all_children == ("ok",)

    @pytest.mark.asyncio
    async def test_unexpected_child_error_does_not_abort_run(self, validator, bitmap):
        add_children(bitmap, [
            ("broken", "1.177700.bitmap", 800000),
            ("ok", "2.177700.bitmap", 800000),
        ])
        bitmap.add_exception("/r/inscription/broken", RuntimeError("boom"))

        result = await validator.validate_bitmap(BITMAP)

        assert result.status == "valid"
        assert [p.id for p in result.details.valid_parcels] == ["ok"]
        assert result.details.failed_children == ("broken",)

    @pytest.mark.asyncio
    async def test_leading_zero_parcel_takes_part_in_tiebreak(self, validator, bitmap):
        add_children(bitmap, [
            ("z", "05.177700.bitmap", 800000),
            ("y", "5.177700.bitmap", 800001),
        ])

        result = await validator.validate_bitmap(BITMAP)

        assert [(p.parcel_number, p.id) for p in result.details.valid_parcels] == [(5, "z")]

        parcel = await validator.validate_bitmap_parcel(BITMAP, 5, "z")
        assert parcel.status == "valid"


class TestValidateBitmapParcel:

    @pytest.mark.asyncio
    async def test_last_parcel_is_valid(self, validator, bitmap):
        add_children(bitmap, [("p5", "5.177700.bitmap", 800000)])

        result = await validator.validate_bitmap_parcel(BITMAP, 5)

        assert result.status == "valid"
        assert result.details.is_parcel
        assert result.details.parcel_number == 5
        assert result.details.inscription_id == "p5"
        assert [p.id for p in result.details.valid_parcels] == ["p5"]

    @pytest.mark.asyncio
    async def test_parcel_equal_to_transaction_count_is_invalid(self, validator, bitmap):
        add_children(bitmap, [("p6", "6.177700.bitmap", 800000)])

        result = await validator.validate_bitmap_parcel(BITMAP, 6)

        assert result.status == "invalid"
        assert "not found" in result.message

    @pytest.mark.asyncio
    async def test_expected_id_must_be_winner(self, validator, bitmap):
        add_children(bitmap, [
            ("winner", "1.177700.bitmap", 800000),
            ("loser", "1.177700.bitmap", 800001),
        ])

        result = await validator.validate_bitmap_parcel(BITMAP, 1, "loser")

        assert result.status == "invalid"
        assert "Identifier mismatch" in result.message
        assert result.details.inscription_id == "loser"

        ok = await validator.validate_bitmap_parcel(BITMAP, 1, "winner")
        assert ok.status == "valid"

    @pytest.mark.asyncio
    async def test_invalid_parent_carries_parcel_details(self, validator, ordinals):
        ordinals.add_bitmap(BITMAP, sat=SAT, inscription_id=ROOT, content="nope")

        result = await validator.validate_bitmap_parcel(BITMAP, 1)

        assert result.status == "invalid"
        assert result.details.is_parcel
        assert result.details.parcel_number == 1

    @pytest.mark.asyncio
    async def test_negative_parcel(self, validator, ordinals):
        result = await validator.validate_bitmap_parcel(BITMAP, -1)
        assert result.status == "invalid"
        assert ordinals.calls == []

    @pytest.mark.asyncio
    async def test_out_of_range_parent_raises(self, validator):
        with pytest.raises(BitmapRangeError):
            await validator.validate_bitmap_parcel(840000, 0)


class TestValidateContent:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["177700", "abc.bitmap", ""])
    async def test_bad_format_makes_no_calls(self, validator, ordinals, content):
        result = await validator.validate_content(content)

        assert result.status == "invalid"
        assert "Bad format" in result.message
        assert ordinals.calls == []

    @pytest.mark.asyncio
    async def test_dispatches_bitmap_claim(self, validator, bitmap):
        result = await validator.validate_content("177700.bitmap", ROOT)
        assert result.status == "valid"
        assert not result.details.is_parcel

    @pytest.mark.asyncio
    async def test_dispatches_parcel_claim(self, validator, bitmap):
        add_children(bitmap, [("p5", "5.177700.bitmap", 800000)])

        valid = await validator.validate_content("5.177700.bitmap", "p5")
        invalid = await validator.validate_content("6.177700.bitmap")

        assert valid.status == "valid"
        assert valid.details.is_parcel
        assert invalid.status == "invalid"

    @pytest.mark.asyncio
    async def test_out_of_range_content_is_invalid_not_raised(self, validator, ordinals):
        result = await validator.validate_content("840000.bitmap")

        assert result.status == "invalid"
        assert result.details.bitmap_number == 840000
        assert ordinals.calls == []
