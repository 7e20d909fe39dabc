import unittest
from datetime import datetime

from backend.app.configs.rgpd_config import DPIA_CRITERIA
from backend.app.database.models import ProcessingRecord
from backend.app.services.record_service import RecordService


def _record(**criteria):
    values = {field: False for field in DPIA_CRITERIA}
    values.update(criteria)
    return ProcessingRecord(name="Vidéosurveillance", purpose="Sécurité des locaux", **values)


# Tests for the CNIL criteria precheck
class TestEvaluateDpiaCriteria(unittest.TestCase):

    # Test no criterion means no DPIA
    def test_not_required(self):
        result = RecordService.evaluate_dpia_criteria(_record())

        self.assertFalse(result["dpia_required"])

        self.assertEqual(result["risk_level"], "faible")

        self.assertEqual(result["criteria"], [])

    # Test a single criterion makes the DPIA recommended only
    def test_recommended(self):
        result = RecordService.evaluate_dpia_criteria(_record(has_systematic_monitoring=True))

        self.assertFalse(result["dpia_required"])

        self.assertEqual(result["risk_level"], "moyen")

        self.assertIn("Surveillance systématique", result["justification"])

    # Test two criteria make the DPIA mandatory
    def test_required(self):
        result = RecordService.evaluate_dpia_criteria(_record(has_systematic_monitoring=True, has_large_scale=True))

        self.assertTrue(result["dpia_required"])

        self.assertEqual(result["criteria_count"], 2)

        self.assertEqual(result["risk_level"], "elevé")

        self.assertTrue(result["justification"].startswith("AIPD obligatoire: 2 critères CNIL"))


# Tests for the CSV cell rendering
class TestCsvValue(unittest.TestCase):

    # Test each value type is rendered as text
    def test_csv_value(self):
        self.assertEqual(RecordService._csv_value(None), "")

        self.assertEqual(RecordService._csv_value(True), "Oui")

        self.assertEqual(RecordService._csv_value(False), "Non")

        self.assertEqual(RecordService._csv_value(["Nom", "Email"]), "Nom, Email")

        self.assertEqual(RecordService._csv_value(datetime(2024, 1, 2, 3, 4)), "2024-01-02T03:04:00")

        self.assertEqual(RecordService._csv_value(12), "12")


if __name__ == "__main__":
    unittest.main()
