import unittest
from datetime import datetime

from backend.app.utils.helpers.json_helper import (
    coerce_bool,
    coerce_list,
    coerce_to_schema,
    parse_iso_datetime,
    to_snake_keys,
)
from backend.app.utils.system_utils.exceptions import BusinessRuleError


# Test class for the loose type coercions
class TestCoercions(unittest.TestCase):

    # should read booleans answered as French or English text
    def test_coerce_bool(self):
        self.assertTrue(coerce_bool("Oui"))

        self.assertTrue(coerce_bool(" true "))

        self.assertTrue(coerce_bool(1))

        self.assertFalse(coerce_bool("non"))

        self.assertFalse(coerce_bool(None))

    # should split separated strings and drop empty items
    def test_coerce_list(self):
        self.assertEqual(coerce_list("Nom, Prénom\n- Email"), ["Nom", "Prénom", "Email"])

        self.assertEqual(coerce_list(["a", "", None, "b"]), ["a", "b"])

        self.assertEqual(coerce_list(None), [])

        self.assertEqual(coerce_list(3), [3])

    # should convert camelCase keys
    def test_to_snake_keys(self):
        self.assertEqual(to_snake_keys({"legalBasis": "contrat", "name": "x"}), {"legal_basis": "contrat", "name": "x"})


# Test class for coerce_to_schema
class TestCoerceToSchema(unittest.TestCase):

    # should fill missing keys and coerce each value to its default type
    def test_coerce_to_schema(self):
        defaults = {"name": "", "retention": "", "transfers_outside_eu": False, "recipients": [], "score": 0}

        result = coerce_to_schema(
            {"name": "Paie", "transfersOutsideEu": "oui", "recipients": "RH, Comptable", "score": "3.0", "extra": 1},
            defaults,
        )

        self.assertEqual(result, {
            "name": "Paie",
            "retention": "",
            "transfers_outside_eu": True,
            "recipients": ["RH", "Comptable"],
            "score": 3,
        })

    # should fall back to the default when a number cannot be read
    def test_invalid_number(self):
        self.assertEqual(coerce_to_schema({"score": "beaucoup"}, {"score": 0})["score"], 0)

    # should return fresh copies of the defaults when the answer is not a dict
    def test_not_a_dict(self):
        defaults = {"items": []}

        result = coerce_to_schema(None, defaults)
        result["items"].append("x")

        self.assertEqual(defaults["items"], [])


# Test class for parse_iso_datetime
class TestParseIsoDatetime(unittest.TestCase):

    # should parse dates and convert aware values to naive UTC
    def test_parse_valid(self):
        self.assertEqual(parse_iso_datetime("2024-03-02", "incident_date"), datetime(2024, 3, 2))

        self.assertEqual(parse_iso_datetime("2024-03-02T12:00:00+02:00", "incident_date"), datetime(2024, 3, 2, 10))

        self.assertEqual(parse_iso_datetime("2024-03-02T10:00:00Z", "incident_date"), datetime(2024, 3, 2, 10))

    # should ignore empty values
    def test_parse_empty(self):
        self.assertIsNone(parse_iso_datetime("", "due_date"))

        self.assertIsNone(parse_iso_datetime(None, "due_date"))

    # should name the field in the error
    def test_parse_invalid(self):
        with self.assertRaises(BusinessRuleError) as ctx:
            parse_iso_datetime("demain", "discovery_date")

        self.assertIn("discovery_date", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
