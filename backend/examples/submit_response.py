"""Example client that submits a survey response and reads the dashboard stats."""
from __future__ import annotations

import argparse
import json
import os

import requests


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send a sample survey response")
    parser.add_argument(
        "--api-url",
        default=os.environ.get("SURVEY_API_URL", "http://127.0.0.1:8000"),
        help="Survey API base URL (default: %(default)s or SURVEY_API_URL)",
    )
    parser.add_argument(
        "--admin-token",
        default=os.environ.get("SURVEY_ADMIN_PASSWORD"),
        help="Admin password used to fetch stats (SURVEY_ADMIN_PASSWORD)",
    )
    parser.add_argument(
        "--source",
        default="cli",
        help="Value stored in the response's source field (default: %(default)s)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    payload = {
        "q1": {"options": ["WhatsApp", "Outro"], "other": "Telegram"},
        "q2": {"options": ["Atraso", "Cliente esquece"]},
        "q3": {"options": ["Nome", "Telefone", "Serviço/procedimento"]},
        "q4": 4,
        "q5": "Sim, muito!",
        "q6": "Dá um pouco de trabalho",
        "q7": {"options": ["Pagamento/PIX", "Relatórios"]},
        "business_type": "Barbearia",
        "city": "São Paulo - SP",
        "source": args.source,
    }
    response = requests.post(f"{args.api_url}/api/submit", json=payload, timeout=10)
    response.raise_for_status()
    print("Response stored:", response.json())

    if not args.admin_token:
        print("No admin token supplied; skipping stats")
        return

    stats = requests.get(
        f"{args.api_url}/api/admin/stats",
        headers={"x-admin-token": args.admin_token},
        timeout=10,
    )
    stats.raise_for_status()
    print("Stats:", json.dumps(stats.json(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
