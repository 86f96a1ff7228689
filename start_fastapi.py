#!/usr/bin/env python3
"""
Development startup script for the FastAPI backend
"""
import os
import subprocess


def main():
    # Set development environment
    os.environ.setdefault('ENVIRONMENT', 'development')
    port = os.environ.setdefault('PORT', '8000')

    # Start FastAPI with hot reload
    subprocess.run([
        'uvicorn',
        'newsscope.main:app',
        '--host', '0.0.0.0',
        '--port', port,
        '--reload'
    ], cwd=os.path.dirname(os.path.abspath(__file__)))


if __name__ == "__main__":
    main()
