import json
from datetime import date


def build_parse_prompt(transcript: str, today: date, timezone: str, context: dict, pending_fields: list[str]) -> str:
    return (
        "You are the language understanding step of a voice productivity assistant.\n"
        "Return ONLY valid JSON. No markdown. No extra text.\n"
        "\n"
        "You MUST follow this response schema exactly:\n"
        "{\n"
        "  \"kind\": \"create_task\" | \"create_event\" | \"create_structured_intent\" | \"clarification_required\",\n"
        "  \"title\": string | null,\n"
        "  \"description\": string | null,\n"
        "  \"date\": \"YYYY-MM-DD\" | null,\n"
        "  \"time\": \"HH:MM\" (24h) | null,\n"
        "  \"duration_minutes\": integer | null,\n"
        "  \"recurrence\": {\"frequency\": \"DAILY\"|\"WEEKLY\"|\"MONTHLY\"|\"YEARLY\", \"interval\": 1,"
        " \"by_day\": [\"MO\", ...], \"by_month_day\": integer | null} | null,\n"
        "  \"priority\": \"high\" | \"normal\" | \"low\" | null,\n"
        "  \"urgency\": string | null,\n"
        "  \"category_id\": string | null,\n"
        "  \"list_id\": string | null,\n"
        "  \"is_confident\": boolean,\n"
        "  \"missing_fields\": [\"title\" | \"date\" | \"time\" | \"duration\" | \"category\" | \"list\"],\n"
        "  \"clarification_question\": string | null,\n"
        "  \"options\": [{\"id\": \"1\", \"label\": \"...\", \"value\": \"...\"}]\n"
        "}\n"
        "Rules:\n"
        "  - Use create_event for anything that blocks time with other people or at a fixed slot.\n"
        "  - Use create_task for to-dos and reminders; date and time are optional.\n"
        "  - Use create_structured_intent for goals or intentions placed in a life area and on a board.\n"
        "  - Use clarification_required only when the request cannot be classified at all.\n"
        "  - Resolve relative dates (\"tomorrow\", \"next friday\") against today's date.\n"
        "  - Never invent a title: leave it null when the user did not say what the item is.\n"
        "  - If the user is answering a previous question, keep the kind from the context and fill only what they said.\n"
        "\n"
        f"today: {today.isoformat()} ({today.strftime('%A')})\n"
        f"timezone: {timezone}\n"
        f"context (fields collected so far): {json.dumps(context, ensure_ascii=False)}\n"
        f"pending_fields (asked for on the last turn): {pending_fields}\n"
        "\n"
        f"transcript: {transcript!r}\n"
    )
