import os
import logging

import streamlit as st
from dotenv import load_dotenv

from frontend.api_client import ApiError, ApiUnavailableError, ArticleApiClient

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_BASE = os.getenv("ARTICLE_API_BASE", "http://localhost:8000")
STATUS_OPTIONS = ["draft", "published"]

PAGE_LIST = "Articles"
PAGE_DETAIL = "Article by ID"
PAGE_CREATE = "New article"
PAGE_UPDATE = "Edit article"

# What each page does once its endpoint answers; shown when the API is down.
ENDPOINT_HINTS = {
    "/articles": "the list shows every article, newest first",
    "/articles/detail": "the page shows the article with all of its fields",
    "/articles/create": "saving adds the article to the database and returns to the list",
    "/articles/update": "saving replaces the article's fields and opens it again",
    "/articles/delete": "the delete button removes the article for good",
}

st.set_page_config(page_title="Article Memo Board", layout="wide")

client = ArticleApiClient(API_BASE)


# ---------------------------
# Helpers
# ---------------------------
def _state_str(key: str) -> str:
    """Return string value from session state or empty string."""
    val = st.session_state.get(key, "")
    return val if isinstance(val, str) else ""


def go_to(page: str, **state) -> None:
    for k, v in state.items():
        st.session_state[k] = v
    st.session_state.pending_page = page
    st.rerun()


def show_error(e: Exception) -> None:
    if isinstance(e, ApiUnavailableError):
        hint = next(
            (h for path, h in ENDPOINT_HINTS.items() if e.endpoint.endswith(path)),
            None,
        )
        if hint is None:
            hint = ENDPOINT_HINTS["/articles/detail"]
        st.warning(
            f"The API at {e.endpoint} is not responding. "
            f"Start it with `python -m backend.main`; once it answers, {hint}."
        )
    elif isinstance(e, ApiError):
        st.error(e.message)
    else:
        st.error(str(e))


def mark_submitting() -> None:
    # button callbacks run before the script, so the rerun renders disabled buttons
    st.session_state.submitting = True


def is_submitting() -> bool:
    return st.session_state.get("submitting", False)


def submit(action, *args):
    """Run one API call while the in-flight flag is set.

    A failure is kept in ``last_error`` and the script reruns, so the error is
    shown at the top of the page with the buttons enabled again.
    """
    st.session_state.last_error = None
    try:
        return action(*args)
    except (ApiError, ApiUnavailableError) as e:
        st.session_state.last_error = e
    finally:
        st.session_state.submitting = False
    st.rerun()


def delete_and_report(article_id) -> None:
    deleted = submit(client.delete_article, article_id)
    logger.info("Deleted article %s", deleted)
    st.session_state.flash = f"Deleted article {deleted}"


def article_form(form_key: str, prefix: str, submit_label: str):
    """Title/content/category/status form bound to ``{prefix}_*`` state keys."""
    # status is free-form on the API side; keep a stored label selectable
    status_options = list(STATUS_OPTIONS)
    current_status = _state_str(f"{prefix}_status")
    if current_status and current_status not in status_options:
        status_options.append(current_status)
    with st.form(form_key):
        st.text_input("Title", key=f"{prefix}_title")
        st.text_area("Content", key=f"{prefix}_content", height=240)
        st.text_input("Category", key=f"{prefix}_category")
        st.selectbox("Status", status_options, key=f"{prefix}_status")
        submitted = st.form_submit_button(
            submit_label, disabled=is_submitting(), on_click=mark_submitting
        )
    values = [
        _state_str(f"{prefix}_title"),
        _state_str(f"{prefix}_content"),
        _state_str(f"{prefix}_category"),
        _state_str(f"{prefix}_status"),
    ]
    return submitted, values


# ---------------------------
# Navigation
# ---------------------------
st.sidebar.title("Article Memo Board")

if st.session_state.get("pending_page"):
    st.session_state.page = st.session_state.pop("pending_page")

page = st.sidebar.radio(
    "Navigation", [PAGE_LIST, PAGE_DETAIL, PAGE_CREATE, PAGE_UPDATE], key="page"
)

st.sidebar.markdown("---")
st.sidebar.caption(f"Backend: {API_BASE}")

flash = st.session_state.pop("flash", None)
if flash:
    st.success(flash)

last_error = st.session_state.pop("last_error", None)
if last_error is not None:
    show_error(last_error)

# --- List ---
if page == PAGE_LIST:
    st.header("Articles")
    if st.button("New article"):
        go_to(PAGE_CREATE)
    try:
        articles = client.list_articles()
    except (ApiError, ApiUnavailableError) as e:
        show_error(e)
        articles = []
    if not articles:
        st.info("No articles yet.")
    for art in articles:
        col1, col2, col3 = st.columns([6, 1, 1])
        col1.write(f"**{art['title']}** · {art['category']} · {art['status']}")
        col1.caption(f"#{art['id']} · created {art['createdAt']} · updated {art['updatedAt']}")
        if col2.button("Open", key=f"open_{art['id']}"):
            go_to(PAGE_DETAIL, view_id=str(art["id"]))
        if col3.button(
            "Delete",
            key=f"del_{art['id']}",
            disabled=is_submitting(),
            on_click=mark_submitting,
        ):
            delete_and_report(art["id"])
            st.rerun()

# --- Detail ---
elif page == PAGE_DETAIL:
    st.header("Article by ID")
    with st.form("view_form"):
        view_id = st.text_input("Article ID", value=_state_str("view_id"))
        st.form_submit_button("Load")
    st.session_state.view_id = view_id.strip()
    if st.session_state.view_id:
        try:
            article = client.get_article(st.session_state.view_id)
        except (ApiError, ApiUnavailableError) as e:
            show_error(e)
            article = None
        if article:
            st.subheader(article["title"])
            st.caption(
                f"#{article['id']} · {article['category']} · {article['status']}"
            )
            st.write(article["content"])
            st.caption(f"Created {article['createdAt']} · updated {article['updatedAt']}")
            col1, col2, col3 = st.columns([1, 1, 4])
            if col1.button("Edit"):
                st.session_state.pop("edit_loaded_id", None)
                go_to(PAGE_UPDATE, edit_article_id=str(article["id"]))
            if col2.button("Delete", disabled=is_submitting(), on_click=mark_submitting):
                delete_and_report(article["id"])
                go_to(PAGE_LIST, view_id="")
    if st.button("Back to list"):
        go_to(PAGE_LIST)

# --- Create ---
elif page == PAGE_CREATE:
    st.header("New article")
    submitted, values = article_form("create_form", "create", "Create")
    if submitted:
        new_id = submit(client.create_article, *values)
        logger.info("Created article %s", new_id)
        for k in ["create_title", "create_content", "create_category", "create_status"]:
            st.session_state.pop(k, None)
        st.session_state.flash = f"Created article {new_id}"
        go_to(PAGE_LIST)
    if st.button("Back to list"):
        go_to(PAGE_LIST)

# --- Update ---
elif page == PAGE_UPDATE:
    st.header("Edit article")
    article_id = st.text_input("Article ID", value=_state_str("edit_article_id")).strip()
    st.session_state.edit_article_id = article_id
    if article_id and st.session_state.get("edit_loaded_id") != article_id:
        try:
            article = client.get_article(article_id)
        except (ApiError, ApiUnavailableError) as e:
            show_error(e)
            article = None
        if article:
            st.session_state.edit_title = article["title"]
            st.session_state.edit_content = article["content"]
            st.session_state.edit_category = article["category"]
            st.session_state.edit_status = article["status"]
            st.session_state.edit_loaded_id = article_id
    if st.session_state.get("edit_loaded_id") == article_id and article_id:
        submitted, values = article_form("edit_form", "edit", "Save changes")
        if submitted:
            updated = submit(client.update_article, article_id, *values)
            logger.info("Updated article %s", updated)
            st.session_state.flash = f"Updated article {updated}"
            st.session_state.pop("edit_loaded_id", None)
            go_to(PAGE_DETAIL, view_id=updated)
    elif not article_id:
        st.info("Enter the ID of the article to edit.")
    if st.button("Back to list"):
        go_to(PAGE_LIST)
