from flask_app.importer.pipeline.validation import (
    NOT_AN_OBJECT_ERROR,
    KeyArity,
    validate_client_row,
    validate_product_row,
)

ARITY = KeyArity(letters=3, digits=3)


def _validate(raw):
    return validate_client_row(raw, code_arity=ARITY, tax_id_digits=11)


def test_key_arity_matches_exact_shape():
    assert ARITY.matches("ABC123")
    assert not ARITY.matches("AB123")
    assert not ARITY.matches("ABCD123")
    assert not ARITY.matches("ABC1234")
    assert not ARITY.matches("")
    assert KeyArity(letters=0, digits=4).matches("1234")
    assert KeyArity(letters=2, digits=0).matches("AB")


def test_valid_client_row_is_normalized():
    outcome = _validate({"COD_CLIENT": "abc-123", "IDENTIFTRI": "20-12345678-3", "RAZON_SOCI": " acme sa "})

    assert outcome.is_valid
    assert outcome.errors == ()
    assert outcome.record == {"COD_CLIENT": "ABC123", "IDENTIFTRI": "20123456783", "RAZON_SOCI": "ACME SA"}


def test_blank_business_name_is_defaulted_not_rejected():
    outcome = _validate({"COD_CLIENT": "ABC123", "IDENTIFTRI": "20123456783"})

    assert outcome.is_valid
    assert outcome.record["RAZON_SOCI"] == "SIN CARGA INICIAL"


def test_short_code_is_rejected():
    outcome = _validate({"COD_CLIENT": "1234", "IDENTIFTRI": "20123456783", "RAZON_SOCI": "X"})

    assert not outcome.is_valid
    assert outcome.record is None
    assert len(outcome.errors) == 1
    assert "COD_CLIENT" in outcome.errors[0]


def test_every_failure_is_reported():
    outcome = _validate({"COD_CLIENT": None, "IDENTIFTRI": "123"})

    assert not outcome.is_valid
    assert outcome.errors == (
        "COD_CLIENT is required.",
        "IDENTIFTRI '123' must contain exactly 11 digits.",
    )
    assert outcome.raw == {"COD_CLIENT": None, "IDENTIFTRI": "123"}


def test_non_mapping_row_is_invalid():
    outcome = _validate(["ABC123", "20123456783"])

    assert not outcome.is_valid
    assert outcome.errors == (NOT_AN_OBJECT_ERROR,)


def test_configured_arity_is_honoured():
    outcome = validate_client_row(
        {"COD_CLIENT": "AB1234", "IDENTIFTRI": "12345678"},
        code_arity=KeyArity(letters=2, digits=4),
        tax_id_digits=8,
    )
    assert outcome.is_valid


def test_product_row_requires_code_description_and_lab():
    outcome = validate_product_row({"code": " ", "desc": "", "lab": None})

    assert not outcome.is_valid
    assert outcome.errors == (
        "The product code is required.",
        "The product description is required.",
        "The product laboratory is required.",
    )


def test_product_row_normalizes_fields():
    outcome = validate_product_row(
        {
            "code": " P-001 ",
            "desc": "Ibuprofeno 400mg",
            "lab": " bago ",
            "category": "analgesicos",
            "iva": "si",
            "medinor_price": "80",
            "public_price": "100,00",
            "price": None,
        }
    )

    assert outcome.is_valid
    record = outcome.record
    assert record["code"] == "P-001"
    assert record["desc"] == "Ibuprofeno 400mg"
    assert record["lab"] == "BAGO"
    assert record["category"] == "ANALGESICOS"
    assert record["iva"] is True
    assert record["listed"] is True
    assert record["medinor_price"] == 80.0
    assert record["public_price"] == 100.0
    assert record["price"] == 0.0
    assert record["labId"] is None


def test_product_lab_may_be_given_by_id():
    outcome = validate_product_row({"code": "P1", "desc": "X", "labId": "3"})

    assert outcome.is_valid
    assert outcome.record["labId"] == 3
