from datetime import date

import pytest

from family_portfolio.backend.services.snapshot_frame import (
    assets_from_backup,
    rows_to_assets,
    to_snapshot_df,
)


BACKUP = {
    "persons": [{"id": "p1", "name": "Alice"}],
    "categories": [{"id": "etf", "name": "ETF"}],
    "settings": {"currency": "EUR"},
    "assets": [
        {
            "id": "a1",
            "name": "World ETF",
            "category": "etf",
            "ownerId": "p1",
            "purchaseAmount": "1,000",
            "purchaseDate": "2024-01-15",
            "currentValue": 1100,
        },
        {
            "id": "a2",
            "name": "Savings",
            "category": "cash",
            "ownerId": "p1",
        },
    ],
    "history": [
        {"id": 2, "assetId": "a1", "date": "2024-02-15", "value": 1100, "investmentChange": 0, "notes": "feb"},
        {"id": 1, "assetId": "a1", "date": "2024-01-15", "value": 1000, "investmentChange": 1000},
        {"id": 3, "assetId": "orphan", "date": "2024-01-15", "value": 5},
    ],
}


def test_assets_from_backup():
    a1, a2 = assets_from_backup(BACKUP)

    assert a1.owner_id == "p1"
    assert a1.purchase_amount == 1000.0
    assert a1.current_value == 1100.0
    assert a1.purchase_date == date(2024, 1, 15)

    # 저장된 순서 유지
    assert [s.id for s in a1.value_history] == [2, 1]
    assert a1.value_history[0].notes == "feb"
    assert a1.value_history[1].investment_change == 1000.0

    assert a2.purchase_amount == 0.0
    assert a2.purchase_date is None
    assert a2.value_history == []


def test_assets_from_empty_backup():
    assert assets_from_backup({}) == []


def test_rows_to_assets_with_supabase_columns():
    assets = rows_to_assets(
        [{"id": 7, "name": "Pension", "category": "pension", "owner_id": "p2", "current_value": 50}],
        [{"id": 1, "asset_id": 7, "date": "2024-03-01", "value": 50, "investment_change": None, "notes": None}],
    )

    (asset,) = assets
    assert asset.id == "7"
    assert asset.value_history[0].investment_change == 0.0
    assert asset.value_history[0].notes == ""


def test_to_snapshot_df_missing_required_column():
    with pytest.raises(KeyError):
        to_snapshot_df([{"asset_id": "a1", "date": "2024-01-01"}])


def test_backup_with_mixed_date_formats_keeps_every_snapshot():
    """
    '2024-01-15' 와 '2024-02-15T00:00:00.000Z' 가 섞여 있어도 모두 읽어야 한다
    """
    document = {
        "assets": [{"id": "a1", "name": "ETF", "category": "etf", "ownerId": "p1", "currentValue": 1100}],
        "history": [
            {"id": 1, "assetId": "a1", "date": "2024-01-15", "value": 1000, "investmentChange": 1000},
            {"id": 2, "assetId": "a1", "date": "2024-02-15T00:00:00.000Z", "value": 1050},
            {"id": 3, "assetId": "a1", "date": "2024/03/15", "value": 1100},
        ],
    }

    (asset,) = assets_from_backup(document)

    assert [s.date for s in asset.value_history] == [
        date(2024, 1, 15),
        date(2024, 2, 15),
        date(2024, 3, 15),
    ]


def test_rows_to_assets_with_timestamp_dates_first():
    assets = rows_to_assets(
        [{"id": "a1", "name": "ETF", "category": "etf", "owner_id": "p1"}],
        [
            {"id": 1, "asset_id": "a1", "date": "2024-01-15T09:30:00+09:00", "value": 1000},
            {"id": 2, "asset_id": "a1", "date": "2024-02-15", "value": 1050},
            {"id": 3, "asset_id": "a1", "date": "not a date", "value": 1100},
        ],
    )

    (asset,) = assets
    assert [s.id for s in asset.value_history] == [1, 2]
    assert asset.value_history[0].date == date(2024, 1, 15)
