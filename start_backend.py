#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-only
"""
Startup script for the Study Better back-end with a Mistral connectivity check
"""

import sys
import requests

from common.config import AppConfig, config
from common.mistral_client import MistralClient


def check_mistral(settings: AppConfig) -> bool:
    """Check that the Mistral API is reachable and accepts the configured key"""
    if not settings.validate_api_config():
        print("❌ MISTRAL_API_KEY is not set!")
        print("💡 Add it to your environment or to a .env file next to app.py")
        return False

    client = MistralClient(settings.mistral_api_key, settings.mistral_base_url)
    try:
        if client.check_connection():
            print("✅ Mistral API is reachable and the key is accepted!")
            return True
        print("❌ Mistral API rejected the configured key")
        return False
    except requests.exceptions.ConnectionError:
        print(f"❌ Cannot reach {settings.mistral_base_url}")
        return False
    except requests.exceptions.RequestException as e:
        print(f"❌ Error checking Mistral: {e}")
        return False


def main():
    print("🚀 Starting Study Better Backend...")
    print("=" * 50)

    mistral_ok = check_mistral(config)

    if not mistral_ok:
        print("\n⚠️  PDF analysis will not work without Mistral!")
        print("   You can still use the PDF and Word exports.")
        print("   Continue anyway? (y/N): ", end="")

        try:
            response = input().lower().strip()
            if response not in ['y', 'yes']:
                print("❌ Exiting. Please configure Mistral first.")
                sys.exit(1)
        except KeyboardInterrupt:
            print("\n❌ Exiting.")
            sys.exit(1)

    # Imported late so the banner above prints before the app logs its config
    from app import app

    print("\n" + "=" * 50)
    print("🌐 Starting Flask server...")
    print("📖 Health check: http://localhost:8000/health")
    print("🔗 Frontend should connect to: http://localhost:8000")
    print("=" * 50)

    try:
        app.run(host="0.0.0.0", port=8000, debug=True)
    except KeyboardInterrupt:
        print("\n🛑 Server stopped by user.")


if __name__ == "__main__":
    main()
