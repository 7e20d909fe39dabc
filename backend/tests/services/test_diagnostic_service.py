import unittest

from backend.app.database.models import DiagnosticQuestion
from backend.app.services.dashboard_service import percent
from backend.app.services.diagnostic_service import action_title, chosen_branch, is_yes


def _question(text="Disposez-vous d'un registre des activités de traitement à jour ?"):
    return DiagnosticQuestion(
        question=text,
        category="Registre",
        action_plan_yes="",
        risk_level_yes="faible",
        action_plan_no="Créer le registre",
        risk_level_no="elevé",
    )


# Tests for the diagnostic answer helpers
class TestDiagnosticHelpers(unittest.TestCase):

    # Test only "oui" counts as yes, whatever its case
    def test_is_yes(self):
        self.assertTrue(is_yes(" OUI "))

        self.assertFalse(is_yes("non"))

        self.assertFalse(is_yes(None))

    # Test the answer selects its branch of the question
    def test_chosen_branch(self):
        question = _question()

        self.assertEqual(chosen_branch(question, "non"), ("Créer le registre", "elevé"))

        self.assertEqual(chosen_branch(question, "oui"), ("", "faible"))

    # Test titles hold the first fifty characters of the question
    def test_action_title(self):
        question = _question()

        self.assertEqual(action_title(question), "Action pour: " + question.question[:50] + "...")


# Tests for the dashboard percentages
class TestPercent(unittest.TestCase):

    # Test rounding and the empty case
    def test_percent(self):
        self.assertEqual(percent(1, 3), 33)

        self.assertEqual(percent(2, 3), 67)

        self.assertEqual(percent(0, 0), 0)


if __name__ == "__main__":
    unittest.main()
