#!/usr/bin/env python3
"""
Farmer Weather Backend - Run Script
Checks the environment and starts the FastAPI server with uvicorn.
"""

import os
import sys
import subprocess
import socket
from pathlib import Path
from urllib.parse import urlparse

def print_colored(message, color="blue"):
    """Print colored output"""
    colors = {
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "blue": "\033[94m",
        "reset": "\033[0m"
    }
    print(f"{colors.get(color, '')}{message}{colors['reset']}")

def check_port_open(host, port):
    """Check if a port is open"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.settimeout(2)
    result = sock.connect_ex((host, port))
    sock.close()
    return result == 0

def check_service(name, url, default_port, hint):
    """Warn (and ask) when a configured backing service is not reachable."""
    parsed = urlparse(url)
    host, port = parsed.hostname or "localhost", parsed.port or default_port
    print_colored(f"🔍 Checking {name} at {host}:{port}...", "blue")
    if check_port_open(host, port):
        return
    print_colored(f"⚠️  Warning: {name} doesn't appear to be running on {host}:{port}", "yellow")
    print(f"  {hint}")
    response = input("Continue anyway? (y/N): ").strip().lower()
    if response != 'y':
        sys.exit(1)

def main():
    print_colored("🚀 Starting Farmer Weather Backend...", "blue")

    if not Path("agriweather/main.py").exists():
        print_colored("❌ Error: agriweather/main.py not found. Please run this script from the backend directory.", "red")
        sys.exit(1)

    # Settings are read from .env here or in the project root
    if not Path(".env").exists() and not Path("../.env").exists():
        print_colored("⚠️  Warning: .env file not found.", "yellow")
        print("Create a .env file with at least:")
        print("  WEATHER_API_KEY=your_openweather_key")
        print("  MONGO_URI=mongodb://localhost:27017")
        print("  REDIS_URL=redis://localhost:6379")
        print("  STORAGE_MODE=mongodb   # or local")
        sys.exit(1)

    from agriweather.core.config import settings

    if not settings.WEATHER_API_KEY:
        print_colored("⚠️  WEATHER_API_KEY is empty - every forecast will be fallback data.", "yellow")

    if settings.STORAGE_MODE == "mongodb":
        check_service("MongoDB", settings.MONGO_URI, 27017, "docker run -d -p 27017:27017 mongo:7.0")
    if settings.REDIS_ENABLED:
        check_service("Redis", settings.REDIS_URL, 6379, "docker run -d -p 6379:6379 redis:7")

    print_colored("✅ All checks passed!", "green")
    print_colored("🌐 Starting Uvicorn server...", "blue")
    print("📍 Backend will be available at: http://localhost:8000")
    print("📍 API Health check: http://localhost:8000/health")
    print("📍 API Documentation: http://localhost:8000/docs")
    print()

    # Run uvicorn with auto-reload for development
    try:
        subprocess.run([
            sys.executable, "-m", "uvicorn",
            "agriweather.main:app",
            "--reload",
            "--host", os.environ.get("HOST", "0.0.0.0"),
            "--port", os.environ.get("PORT", "8000")
        ], check=True)
    except KeyboardInterrupt:
        print_colored("\n👋 Backend server stopped.", "yellow")
    except subprocess.CalledProcessError as e:
        print_colored(f"\n❌ Error starting server: {e}", "red")
        sys.exit(1)

if __name__ == "__main__":
    main()
