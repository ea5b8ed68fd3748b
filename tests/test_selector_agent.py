import io
import json
from unittest.mock import MagicMock, patch

from selector_agent import bedrock_invoke_claude, build_repair_prompt, coerce_to_json_array, suggest_selectors


def bedrock_response(text):
    payload = {"content": [{"type": "text", "text": text}]}
    return {"body": io.BytesIO(json.dumps(payload).encode("utf-8"))}


def test_coerce_to_json_array_strips_code_fences():
    assert coerce_to_json_array('```json\n["#a", "#b"]\n```') == ["#a", "#b"]


def test_coerce_to_json_array_ignores_surrounding_prose():
    assert coerce_to_json_array('Try these: ["text=EU List"] good luck') == ["text=EU List"]


def test_coerce_to_json_array_rejects_non_arrays():
    assert coerce_to_json_array("not json at all") == []
    assert coerce_to_json_array('{"selector": "#a"}') == []


def test_repair_prompt_lists_known_elements():
    prompt = build_repair_prompt("eu list", 'a:has-text("EU List")', "https://netreveal/home.do",
                                 {"ids": ["eu_list_item"]})

    assert "Element description: eu list" in prompt
    assert 'Failed selector: a:has-text("EU List")' in prompt
    assert "eu_list_item" in prompt
    assert "Known elements" not in build_repair_prompt("eu list", "#x", "https://netreveal/home.do")


def test_bedrock_invoke_claude_reads_text_blocks():
    client = MagicMock()
    client.invoke_model.return_value = bedrock_response(' ["#menu-trigger"] ')

    with patch("selector_agent.boto3.client", return_value=client) as make_client:
        text = bedrock_invoke_claude("prompt", model_id="model-x", region="eu-west-1")

    assert text == '["#menu-trigger"]'
    make_client.assert_called_once_with("bedrock-runtime", region_name="eu-west-1")
    kwargs = client.invoke_model.call_args.kwargs
    assert kwargs["modelId"] == "model-x"
    assert json.loads(kwargs["body"])["max_tokens"] == 500


def test_suggest_selectors_filters_unusable_entries():
    with patch("selector_agent.bedrock_invoke_claude", return_value='["#a", 3, "", "text=Lists"]'):
        assert suggest_selectors("lists menu", "#lists", "https://netreveal/home.do") == ["#a", "text=Lists"]


def test_suggest_selectors_returns_empty_on_bedrock_error(capsys):
    with patch("selector_agent.bedrock_invoke_claude", side_effect=RuntimeError("Unable to locate credentials")):
        assert suggest_selectors("lists menu", "#lists", "https://netreveal/home.do") == []
    assert "Repair error" in capsys.readouterr().out
