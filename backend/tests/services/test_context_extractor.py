import unittest

from backend.app.configs.rgpd_config import DEFAULT_SECTOR_CONTEXT, SECTOR_CONTEXTS
from backend.app.database.models import ProcessingRecord
from backend.app.services.context_extractor import ContextExtractor


def _record(record_id, purpose, categories=None, legal_basis=None, **kwargs):
    return ProcessingRecord(
        id=record_id,
        name=f"Traitement {record_id}",
        purpose=purpose,
        data_categories=categories or [],
        legal_basis=legal_basis,
        **kwargs,
    )


# Tests for the record similarity used to find related records
class TestRecordSimilarity(unittest.TestCase):

    # Test identical records are fully similar
    def test_identical_records(self):
        first = _record(1, "gestion paie salariés", ["Identité", "Salaire"], "obligation légale")
        second = _record(2, "gestion paie salariés", ["Identité", "Salaire"], "obligation légale")

        self.assertAlmostEqual(ContextExtractor.calculate_similarity(first, second), 1.0)

    # Test only the fields filled on both sides are weighed
    def test_partial_fields(self):
        first = _record(1, "gestion paie salariés", legal_basis="contrat")
        second = _record(2, "gestion paie clients", legal_basis="consentement")

        # purpose 0.5 * 0.4 and a different legal basis, over 0.7
        self.assertAlmostEqual(ContextExtractor.calculate_similarity(first, second), 0.2 / 0.7)

    # Test records without comparable fields score zero
    def test_no_comparable_fields(self):
        self.assertEqual(ContextExtractor.calculate_similarity(_record(1, ""), _record(2, "")), 0.0)

    # Test related records exclude the current one, pass the threshold and are sorted
    def test_find_related_records(self):
        current = _record(1, "gestion paie salariés", ["Identité"], "contrat")
        records = [
            current,
            _record(2, "gestion paie salariés", ["Identité"], "contrat"),
            _record(3, "prospection commerciale", ["Email"], "consentement"),
            _record(4, "gestion paie intérimaires", ["Identité"], "contrat"),
        ]

        related = ContextExtractor().find_related_records(current, records)

        self.assertEqual([item["name"] for item in related], ["Traitement 2", "Traitement 4"])

        self.assertAlmostEqual(related[0]["similarity"], 1.0)


# Tests for the risk estimate and the sector hints
class TestRiskAndSector(unittest.TestCase):

    # Test each risk level
    def test_assess_processing_risk(self):
        high = _record(1, "suivi", ["Données de santé"], None, transfers_outside_eu=False)
        moderate = _record(2, "suivi", ["Santé"], "contrat", transfers_outside_eu=False)
        low = _record(3, "suivi", ["Nom"], "contrat", transfers_outside_eu=False)

        self.assertEqual(ContextExtractor.assess_processing_risk(high), "Élevé")

        self.assertEqual(ContextExtractor.assess_processing_risk(moderate), "Modéré")

        self.assertEqual(ContextExtractor.assess_processing_risk(low), "Faible")

    # Test sectors are matched by keyword with a default context
    def test_get_sector_context(self):
        self.assertIs(ContextExtractor.get_sector_context("Commerce de détail"), SECTOR_CONTEXTS[0][1])

        self.assertIs(ContextExtractor.get_sector_context("Industrie"), DEFAULT_SECTOR_CONTEXT)

        self.assertIsNone(ContextExtractor.get_sector_context(None))


# Tests for the prompt rendering
class TestFormatContext(unittest.TestCase):

    def setUp(self):
        self.context = {
            "company": {
                "name": "Boulangerie Martin",
                "sector": "Commerce",
                "size": "TPE",
                "total_processing_records": 2,
                "compliance_score": 40,
            },
            "current_processing": None,
            "related_records": [{"name": "Paie", "purpose": "Salaires", "data_categories": "", "similarity": 0.456}],
            "company_context": {
                "has_data_breaches": True,
                "active_actions": 3,
                "subject_requests": 0,
                "privacy_policy_exists": False,
            },
            "sector_context": None,
            "existing_data": {"processing_record_id": 1, "generalDescription": "x" * 150, "empty": ""},
            "field": "generalDescription",
        }

    # Test the sections present in the context are rendered
    def test_format_context_for_ai(self):
        text = ContextExtractor().format_context_for_ai(self.context)

        self.assertTrue(text.startswith("INFORMATIONS DE L'ENTREPRISE:\n- Nom: Boulangerie Martin"))

        self.assertIn("- Score de conformité actuel: 40%", text)

        self.assertIn("- Paie: Salaires (similarité: 46%)", text)

        self.assertIn("- Violations de données déclarées: Oui", text)

        self.assertNotIn("TRAITEMENT ANALYSÉ", text)

        self.assertNotIn("CONTEXTE SECTORIEL", text)

    # Test existing fields are previewed without the record reference
    def test_existing_data(self):
        text = ContextExtractor().format_context_for_ai(self.context)

        self.assertIn("- generalDescription: " + "x" * 100 + "...", text)

        self.assertNotIn("processing_record_id", text)

        self.assertNotIn("- empty:", text)


if __name__ == "__main__":
    unittest.main()
