from flask_app.importer.pipeline.classify import Disposition, NaturalKey, classify_batch, lookup_existing
from flask_app.importer.pipeline.clients import CLIENT_KEYS, ClientRules, analyze_clients
from flask_app.importer.pipeline.validation import KeyArity, ValidationOutcome

RULES = ClientRules(code_arity=KeyArity(letters=3, digits=3), tax_id_digits=11, password_hash_method="pbkdf2:sha256:1000")


def _row(code, tax_id, name="ACME"):
    return {"COD_CLIENT": code, "IDENTIFTRI": tax_id, "RAZON_SOCI": name}


def _client_store(memory_store, *stored):
    return memory_store(
        ["cod_client", "identiftri"],
        [{"cod_client": code, "identiftri": tax_id} for code, tax_id in stored],
    )


def test_same_code_twice_is_new_then_conflicting(memory_store):
    store = _client_store(memory_store)

    report = analyze_clients([_row("ABC123", "20123456783"), _row("abc-123", "27123456784")], store=store, rules=RULES)

    assert [item.record["COD_CLIENT"] for item in report.new] == ["ABC123"]
    assert len(report.conflicting) == 1
    assert report.conflicting[0].conflict_reason == "The client code ABC123 is duplicated within the batch."


def test_duplicate_tax_id_within_batch_is_conflicting(memory_store):
    report = analyze_clients(
        [_row("ABC123", "20123456783"), _row("XYZ999", "20-12345678-3")], store=_client_store(memory_store), rules=RULES
    )

    assert len(report.new) == 1
    assert report.conflicting[0].conflict_reason == "The tax id 20123456783 is duplicated within the batch."


def test_stored_code_is_current_even_when_tax_id_differs(memory_store):
    store = _client_store(memory_store, ("ABC123", "20123456783"))

    report = analyze_clients([_row("ABC123", "27999999994")], store=store, rules=RULES)

    assert len(report.current) == 1
    assert report.current[0].disposition is Disposition.CURRENT
    assert report.new == []


def test_stored_tax_id_under_new_code_is_conflicting(memory_store):
    store = _client_store(memory_store, ("ABC123", "20123456783"))

    report = analyze_clients([_row("XYZ999", "20123456783")], store=store, rules=RULES)

    assert report.conflicting[0].conflict_reason == (
        "The tax id 20123456783 is already used by another record in the database."
    )


def test_store_match_takes_priority_over_batch_duplicates(memory_store):
    store = _client_store(memory_store, ("ABC123", "20123456783"))

    report = analyze_clients([_row("ABC123", "20123456783"), _row("ABC123", "20123456783")], store=store, rules=RULES)

    assert len(report.current) == 2
    assert report.conflicting == []


def test_every_row_lands_in_exactly_one_bucket(memory_store):
    store = _client_store(memory_store, ("OLD001", "30111111118"))
    rows = [
        _row("ABC123", "20123456783"),
        _row("ABC123", "20123456784"),
        _row("OLD001", "30111111118"),
        _row("NEW002", "30111111118"),
        _row("1234", "20123456783"),
        "not a row",
        _row("DEF456", "27000000001"),
    ]

    report = analyze_clients(rows, store=store, rules=RULES)
    summary = report.summary()

    assert summary == {
        "totalReceived": 7,
        "totalValid": 5,
        "totalInvalid": 2,
        "totalNew": 2,
        "totalCurrent": 1,
        "totalConflicts": 2,
    }
    assert summary["totalNew"] + summary["totalCurrent"] + summary["totalConflicts"] + summary["totalInvalid"] == 7
    assert store.lookups == 1
    assert store.insert_calls == 0


def test_report_payload_shape(memory_store):
    report = analyze_clients(
        [_row("ABC123", "20123456783"), _row("ABC123", "20123456784"), _row("1", "2")],
        store=_client_store(memory_store),
        rules=RULES,
    )

    payload = report.to_dict("Analysis completed.")

    assert payload["message"] == "Analysis completed."
    assert payload["data"]["newRecords"] == [{"COD_CLIENT": "ABC123", "IDENTIFTRI": "20123456783", "RAZON_SOCI": "ACME"}]
    assert payload["data"]["conflictingRecords"][0]["conflictReason"]
    assert payload["data"]["invalidRows"][0]["data"] == {"COD_CLIENT": "1", "IDENTIFTRI": "2", "RAZON_SOCI": "ACME"}
    assert payload["data"]["currentRecords"] == []


def test_classify_batch_supports_a_single_key_and_comparator():
    keys = (NaturalKey(field="code", column="code", label="product code"),)
    outcomes = [
        ValidationOutcome.valid({}, {"code": "P1", "desc": "same"}),
        ValidationOutcome.valid({}, {"code": "P2", "desc": "changed"}),
        ValidationOutcome.valid({}, {"code": "P3", "desc": "fresh"}),
    ]
    existing = {"code": {"P1": {"code": "P1", "desc": "same"}, "P2": {"code": "P2", "desc": "old"}}}

    def compare(record, stored):
        return "drift" if record["desc"] != stored["desc"] else None

    report = classify_batch(outcomes, keys, existing, compare_current=compare)

    assert [item.record["code"] for item in report.current] == ["P1"]
    assert [item.conflict_reason for item in report.conflicting] == ["drift"]
    assert [item.record["code"] for item in report.new] == ["P3"]


def test_lookup_existing_queries_every_key_once(memory_store):
    store = _client_store(memory_store, ("ABC123", "20123456783"))

    existing = lookup_existing(store, [{"COD_CLIENT": "ABC123", "IDENTIFTRI": "1"}], CLIENT_KEYS)

    assert set(existing) == {"cod_client", "identiftri"}
    assert "ABC123" in existing["cod_client"]
    assert store.lookups == 1
