import unittest

from backend.app.services.dpia_service import DpiaService, recommend, score_criteria


# Tests for the CNIL criteria scoring
class TestScoreCriteria(unittest.TestCase):

    # Test only known criteria answered true are counted
    def test_score_criteria(self):
        answers = {
            "has_scoring": True,
            "has_large_scale": "oui",
            "has_sensitive_data": False,
            "has_unknown_criterion": True,
        }

        self.assertEqual(score_criteria(answers), 2)

    # Test missing answers score zero
    def test_empty_answers(self):
        self.assertEqual(score_criteria(None), 0)

        self.assertEqual(score_criteria({}), 0)


# Tests for the recommendation
class TestRecommend(unittest.TestCase):

    # Test the threshold and the CNIL list
    def test_recommend(self):
        self.assertEqual(recommend(0, False), "not_required")

        self.assertEqual(recommend(1, False), "recommended")

        self.assertEqual(recommend(2, False), "required")

        self.assertEqual(recommend(0, True), "required")


# Tests for the CNIL security measures catalogue
class TestSecurityMeasures(unittest.TestCase):

    # Test the category filter
    def test_filter_by_category(self):
        result = DpiaService.security_measures("Chiffrement")

        self.assertTrue(result["measures"])

        self.assertEqual({measure["category"] for measure in result["measures"]}, {"Chiffrement"})

        self.assertGreater(len(DpiaService.security_measures()["measures"]), len(result["measures"]))


if __name__ == "__main__":
    unittest.main()
