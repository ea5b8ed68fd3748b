import json

import boto3


DEFAULT_MODEL_ID = "anthropic.claude-3-sonnet-20240229-v1:0"
DEFAULT_REGION = "us-east-1"


def build_repair_prompt(description: str, failed_selector: str, url: str, inventory: dict | None = None) -> str:
    return (
        "You are a test selector repair assistant for the NetReveal web application.\n"
        "A Playwright selector for a UI element no longer matches. Propose up to 3 alternative selectors.\n"
        "Output a JSON array of strings ONLY, no prose.\n\n"
        f"Element description: {description}\n"
        f"Failed selector: {failed_selector}\n"
        f"Current URL: {url}\n\n"
        + ("Known elements on page:\n" + json.dumps(inventory, indent=2) + "\n\n" if inventory else "")
        + "Rules:\n"
        "- Prefer stable selectors: id > role+name > aria-label > text; avoid positional CSS.\n"
        "- Each entry must be a CSS selector, an XPath starting with //, or a text= selector.\n"
        + ("- Do NOT invent ids. Only use ids listed in Known elements.\n" if inventory else "")
    )


def bedrock_invoke_claude(prompt: str, model_id: str, region: str, verbose: bool = False) -> str:
    if verbose:
        print("\n===== Repair Prompt (to Bedrock) =====")
        print(prompt)
        print("===== End Prompt =====\n")
    body = {
        "anthropic_version": "bedrock-2023-05-31",
        "messages": [
            {"role": "user", "content": [{"type": "text", "text": prompt}]}
        ],
        "max_tokens": 500,
    }
    client = boto3.client("bedrock-runtime", region_name=region)
    resp = client.invoke_model(
        body=json.dumps(body).encode("utf-8"),
        modelId=model_id,
        accept="application/json",
        contentType="application/json",
    )
    raw = resp["body"].read().decode("utf-8")
    parsed = json.loads(raw)
    text = ""
    if isinstance(parsed.get("content"), list):
        for item in parsed["content"]:
            if item.get("type") == "text":
                text += item.get("text", "")
    if verbose:
        print("\n===== Repair Raw Response =====")
        print(text)
        print("===== End Raw Response =====\n")
    return text.strip()


def coerce_to_json_array(text: str) -> list:
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    # keep only content between the first [ and last ]
    start = cleaned.find("[")
    end = cleaned.rfind("]")
    if start != -1 and end != -1 and end > start:
        cleaned = cleaned[start : end + 1]
    try:
        arr = json.loads(cleaned)
    except json.JSONDecodeError:
        return []
    return arr if isinstance(arr, list) else []


def suggest_selectors(description: str, failed_selector: str, url: str, inventory: dict | None = None,
                      model_id: str = DEFAULT_MODEL_ID, region: str = DEFAULT_REGION, verbose: bool = False) -> list[str]:
    """Ask the model for replacement selectors. Any Bedrock error yields an empty list."""
    prompt = build_repair_prompt(description, failed_selector, url, inventory)
    try:
        raw = bedrock_invoke_claude(prompt, model_id=model_id, region=region, verbose=verbose)
    except Exception as e:
        print(f"🔧 Repair error: {e}")
        return []
    suggestions = [s for s in coerce_to_json_array(raw) if isinstance(s, str) and s]
    if verbose:
        print(f"🔧 Repair suggestions: {suggestions}")
    return suggestions
