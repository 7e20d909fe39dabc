import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from google.api_core import exceptions as google_exceptions

from backend.app.utils.helpers.gemini_helper import GeminiHelper
from backend.app.utils.system_utils.exceptions import AIServiceUnavailableError, BusinessRuleError


def _helper(api_key=None):
    helper = GeminiHelper()
    helper.api_key = api_key
    helper.model_name = "gemini-2.0-flash"
    helper.temperature = 0.7
    helper.max_output_tokens = 4000
    return helper


# Tests for the JSON parsing of model answers
class TestGeminiHelperParseResponse(unittest.TestCase):

    def setUp(self):
        self.helper = _helper()

    # Test a plain JSON object is parsed
    def test_parse_plain_json(self):
        result = self.helper.parse_response('{"risk": "high"}')

        self.assertEqual(result, {"risk": "high"})

    # Test code fences and the json marker are removed
    def test_parse_fenced_json(self):
        result = self.helper.parse_response('```json\n{"name": "Paie"}\n```')

        self.assertEqual(result, {"name": "Paie"})

    # Test the first balanced object is extracted from surrounding prose
    def test_parse_embedded_json(self):
        answer = 'Voici le résultat : {"name": "CRM", "note": "a } inside"} Bonne journée {"x": 1}'

        result = self.helper.parse_response(answer)

        self.assertEqual(result, {"name": "CRM", "note": "a } inside"})

    # Test empty and non-object answers give None
    def test_parse_invalid(self):
        self.assertIsNone(self.helper.parse_response(""))

        self.assertIsNone(self.helper.parse_response("[1, 2, 3]"))

        self.assertIsNone(self.helper.parse_response("pas de JSON ici"))


# Tests for retry detection
class TestGeminiHelperRetryable(unittest.TestCase):

    # Test quota and unavailability errors are retryable
    def test_google_errors(self):
        self.assertTrue(GeminiHelper.is_retryable_error(google_exceptions.ResourceExhausted("quota")))

        self.assertTrue(GeminiHelper.is_retryable_error(google_exceptions.ServiceUnavailable("down")))

    # Test status attributes and overload messages are recognised
    def test_status_and_message(self):
        error = Exception("boom")
        error.status_code = 503

        self.assertTrue(GeminiHelper.is_retryable_error(error))

        self.assertTrue(GeminiHelper.is_retryable_error(RuntimeError("The model is overloaded")))

    # Test other errors are not retried
    def test_not_retryable(self):
        self.assertFalse(GeminiHelper.is_retryable_error(ValueError("bad request")))


# Tests for the selection of generation settings
class TestGeminiHelperSettings(unittest.TestCase):

    def setUp(self):
        self.helper = _helper()

    # Test defaults are used without configuration
    def test_defaults(self):
        settings = self.helper.resolve_settings()

        self.assertEqual(settings, {"model_name": "gemini-2.0-flash", "temperature": 0.7, "max_output_tokens": 4000})

    # Test an active Gemini configuration overrides the defaults
    def test_active_configuration(self):
        config = SimpleNamespace(id=1, provider="Google", model_name="gemini-1.5-pro", temperature="0.2", max_tokens=1024)

        settings = self.helper.resolve_settings(config)

        self.assertEqual(settings["model_name"], "gemini-1.5-pro")

        self.assertEqual(settings["temperature"], 0.2)

        self.assertEqual(settings["max_output_tokens"], 1024)

    # Test an unsupported provider keeps the defaults
    def test_unsupported_provider(self):
        config = SimpleNamespace(id=2, provider="openai", model_name="gpt", temperature=0.1, max_tokens=10)

        self.assertEqual(self.helper.resolve_settings(config)["model_name"], "gemini-2.0-flash")

    # Test an invalid temperature is ignored
    def test_invalid_temperature(self):
        config = SimpleNamespace(id=3, provider="gemini", model_name=None, temperature="chaud", max_tokens=None)

        settings = self.helper.resolve_settings(config)

        self.assertEqual(settings["temperature"], 0.7)

        self.assertEqual(settings["max_output_tokens"], 4000)


# Tests for the generation calls
class TestGeminiHelperGenerate(unittest.IsolatedAsyncioTestCase):

    # Test a missing API key makes the service unavailable
    async def test_unconfigured(self):
        helper = _helper()

        self.assertFalse(helper.is_configured())

        with self.assertRaises(AIServiceUnavailableError):
            await helper.generate_text("Bonjour")

    # Test the answer text is returned stripped
    @patch("backend.app.utils.helpers.gemini_helper.gemini_usage_manager")
    @patch("backend.app.utils.helpers.gemini_helper.genai")
    async def test_generate_text(self, mock_genai, mock_usage):
        mock_usage.acquire_request_slot = AsyncMock()
        mock_usage.release_request_slot = AsyncMock()
        model = MagicMock()
        model.generate_content.return_value = SimpleNamespace(text="  Réponse  ")
        mock_genai.GenerativeModel.return_value = model
        helper = _helper("key")

        result = await helper.generate_text("Bonjour", operation="chatbot")

        self.assertEqual(result, "Réponse")

        mock_genai.configure.assert_called_once_with(api_key="key")

        mock_usage.acquire_request_slot.assert_awaited_once_with("chatbot")

        mock_usage.release_request_slot.assert_awaited_once()

    # Test overloaded calls are retried then reported unavailable
    @patch("backend.app.utils.helpers.gemini_helper.asyncio.sleep", new_callable=AsyncMock)
    @patch("backend.app.utils.helpers.gemini_helper.get_config")
    @patch("backend.app.utils.helpers.gemini_helper.gemini_usage_manager")
    @patch("backend.app.utils.helpers.gemini_helper.genai")
    async def test_retry_exhausted(self, mock_genai, mock_usage, mock_config, mock_sleep):
        mock_usage.acquire_request_slot = AsyncMock()
        mock_usage.release_request_slot = AsyncMock()
        mock_config.side_effect = lambda key, default=None: {"llm_max_retries": 2, "llm_retry_delay": 1}.get(key, default)
        model = MagicMock()
        model.generate_content.side_effect = google_exceptions.ServiceUnavailable("overloaded")
        mock_genai.GenerativeModel.return_value = model
        helper = _helper("key")

        with self.assertRaises(AIServiceUnavailableError):
            await helper.generate_text("Bonjour")

        self.assertEqual(model.generate_content.call_count, 2)

        mock_sleep.assert_awaited_once_with(1.0)

        mock_usage.release_request_slot.assert_awaited_once()

    # Test a structured answer that is not an object is refused
    async def test_generate_structured_invalid(self):
        helper = _helper("key")
        helper.send_request = AsyncMock(return_value="désolé")

        with self.assertRaises(BusinessRuleError):
            await helper.generate_structured("Analyse", {"risk": ""})

    # Test the schema and context are embedded in the prompt
    async def test_generate_structured(self):
        helper = _helper("key")
        helper.send_request = AsyncMock(return_value='{"risk": "faible"}')

        result = await helper.generate_structured("Analyse", {"risk": ""}, context={"company": "Martin"})

        self.assertEqual(result, {"risk": "faible"})

        prompt = helper.send_request.call_args.args[0]

        self.assertIn("Analyse", prompt)

        self.assertIn('"company": "Martin"', prompt)


if __name__ == "__main__":
    unittest.main()
