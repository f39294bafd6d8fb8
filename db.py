"""Supabase settings and client. One client per Streamlit browser session."""
import logging
import os

import streamlit as st
from dotenv import load_dotenv
from supabase import create_client, Client

load_dotenv()

EXAMS_TABLE = os.environ.get("EXAMS_TABLE", "exams")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

logger = logging.getLogger(__name__)


def _env_client() -> Client:
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
    logger.debug("Creating Supabase client for %s", url)
    return create_client(url, key)


def get_supabase() -> Client:
    """Client for the current browser session. Auth state lives on the client, so it is kept out of st.cache_resource."""
    if "supabase" not in st.session_state:
        st.session_state["supabase"] = _env_client()
    return st.session_state["supabase"]


def get_supabase_uncached() -> Client:
    """For CLI/scripts (no Streamlit context)."""
    return _env_client()
