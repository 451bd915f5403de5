import os
import unittest
from unittest.mock import patch

from microbot.bootstrap import build_completion
from microbot.config import Settings
from microbot.services.completion import HttpCompletionClient
from microbot.services.llm_openai import OpenAILLMClient


class SettingsTestCase(unittest.TestCase):
    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        s = Settings(_env_file=None)
        self.assertIsNone(s.api_key)
        self.assertEqual(s.api_base, "https://api.aimlapi.com/v1")
        self.assertTrue(s.stream)
        self.assertEqual(s.llm.to_settings().model, "gpt-4o-mini")

    @patch.dict(os.environ, {"AIML_API_KEY": "aiml-key"}, clear=True)
    def test_provider_key_alias(self):
        self.assertEqual(Settings(_env_file=None).api_key, "aiml-key")

    @patch.dict(
        os.environ,
        {
            "MICROBOT_STREAM": "false",
            "MICROBOT_LLM__MAX_TOKENS": "512",
            "MICROBOT_COMPLETION_ENDPOINT": "http://localhost:8000/api/chat",
        },
        clear=True,
    )
    def test_prefixed_and_nested_values(self):
        s = Settings(_env_file=None)
        self.assertFalse(s.stream)
        self.assertEqual(s.llm.max_tokens, 512)
        self.assertEqual(s.completion_endpoint, "http://localhost:8000/api/chat")


class BuildCompletionTestCase(unittest.TestCase):
    def test_endpoint_selects_http_client(self):
        s = Settings(_env_file=None, completion_endpoint="http://localhost:8000/api/chat")
        self.assertIsInstance(build_completion(s), HttpCompletionClient)

    def test_provider_client_by_default(self):
        s = Settings(_env_file=None, api_key="k", stream=False)
        client = build_completion(s)
        self.assertIsInstance(client, OpenAILLMClient)
        self.assertFalse(client.stream)


if __name__ == "__main__":
    unittest.main()
