from disabled_license_report.reconciliation import (
    reconcile,
    build_sku_map,
    resolve_license_names,
    LicenseSku,
)

from conftest import make_user


def test_duplicate_assignments_collapse_to_sorted_names(skus):
    report = reconcile(skus, [make_user("u1@contoso.com", ["sku-B", "sku-A", "sku-A"])])

    row = report.rows[0]
    assert row.license_part_numbers == ("E3", "E5")
    assert row.license_sku_part_nos == "E3; E5"
    assert row.license_count == 2
    assert row.account_enabled is False


def test_user_without_licenses_is_counted_but_not_reported(skus):
    report = reconcile(skus, [
        make_user("u1@contoso.com", ["sku-A"]),
        make_user("u2@contoso.com", []),
    ])

    assert report.total_disabled_users == 2
    assert report.disabled_with_licenses == 1
    assert [r.user_principal_name for r in report.rows] == ["u1@contoso.com"]


def test_unknown_sku_falls_back_to_raw_id(skus):
    report = reconcile(skus, [make_user("u1@contoso.com", ["unknown-sku-123"])])

    row = report.rows[0]
    assert "unknown-sku-123" in row.license_sku_part_nos
    assert row.license_count == 1


def test_unknown_and_known_ids_are_sorted_together(skus):
    report = reconcile(skus, [make_user("u1@contoso.com", ["zz-raw", "sku-B", "aa-raw"])])

    assert report.rows[0].license_part_numbers == ("E5", "aa-raw", "zz-raw")


def test_enabled_users_never_produce_rows(skus):
    report = reconcile(skus, [make_user("u3@contoso.com", ["sku-A"], enabled=True)])

    assert report.rows == ()
    assert report.total_disabled_users == 0


def test_rows_sorted_by_principal_name(skus):
    users = [
        make_user("carol@contoso.com", ["sku-A"]),
        make_user("alice@contoso.com", ["sku-B"]),
        make_user("bob@contoso.com", ["sku-A"]),
        make_user("dave@contoso.com", []),
    ]
    report = reconcile(skus, users)

    upns = [r.user_principal_name for r in report.rows]
    assert upns == sorted(upns)
    assert all(a <= b for a, b in zip(upns, upns[1:]))


def test_equal_principal_names_keep_input_order(skus):
    users = [
        make_user("same@contoso.com", ["sku-A"], object_id="first"),
        make_user("same@contoso.com", ["sku-B"], object_id="second"),
    ]
    report = reconcile(skus, users)

    assert [r.object_id for r in report.rows] == ["first", "second"]


def test_license_count_matches_distinct_names(skus):
    users = [
        make_user(f"user{i}@contoso.com", ids)
        for i, ids in enumerate([
            ["sku-A"], ["sku-A", "sku-A"], ["sku-A", "sku-B", "x"], ["x", "x", "y"],
        ])
    ]
    report = reconcile(skus, users)

    for row in report.rows:
        assert row.license_count == len(set(row.license_part_numbers)) >= 1


def test_identical_input_gives_identical_report(skus, generated_at):
    users = [
        make_user("b@contoso.com", ["sku-B", "sku-A"]),
        make_user("a@contoso.com", ["missing"]),
    ]

    first = reconcile(skus, users, generated_at=generated_at)
    second = reconcile(skus, users, generated_at=generated_at)

    assert first == second


def test_none_inputs_are_empty():
    report = reconcile(None, None)

    assert report.rows == ()
    assert report.total_disabled_users == 0
    assert report.generated_at is None


def test_csv_row_mapping(skus):
    row = reconcile(skus, [make_user("u1@contoso.com", ["sku-A"], name="Ünal Şahin")]).rows[0]

    assert row.to_csv_row() == {
        "DisplayName": "Ünal Şahin",
        "UserPrincipalName": "u1@contoso.com",
        "ObjectId": "id-u1@contoso.com",
        "AccountEnabled": False,
        "LicenseSkuPartNos": "E3",
        "LicenseCount": 1,
    }


def test_helpers():
    sku_map = build_sku_map([LicenseSku("a", "A_PART")])

    assert sku_map == {"a": "A_PART"}
    assert resolve_license_names(["a", "b", "a"], sku_map) == ("A_PART", "b")
    assert resolve_license_names(None, sku_map) == ()


def test_repeated_runs_without_timestamp_are_equal(skus):
    users = [
        make_user("b@contoso.com", ["sku-B", "sku-A"]),
        make_user("a@contoso.com", ["missing"]),
        make_user("c@contoso.com", []),
    ]

    assert reconcile(skus, users) == reconcile(skus, users)
