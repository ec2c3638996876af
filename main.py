"""Streamlit entry point for the proposal studio.

Deployments that run ``streamlit run main.py`` land here; the page itself
lives in :mod:`proposal_app`.
"""
from __future__ import annotations


def main() -> None:
    import proposal_app

    proposal_app.main()


if __name__ == "__main__":
    main()
