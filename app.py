"""
llmcourse - Learn how Large Language Models work, one module at a time.

Streamlit front end over the progress engine. Content rendering lives
elsewhere; this app only shows and updates progress.

Usage:
    streamlit run app.py
"""

import logging

import streamlit as st

from llmcourse.classroom import (
    ProgressTracker,
    get_status_indicator,
    has_active_session,
    module_summaries,
    next_module,
    previous_module,
    resume_point,
)
from llmcourse.config import get_settings, open_default_storage
from llmcourse.schemas import LearnerVariant, ModuleStatus


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(levelname)s - %(message)s"
)

st.set_page_config(
    page_title="LLM Course",
    page_icon="🧠",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "tracker" not in st.session_state:
        tracker = ProgressTracker(open_default_storage(settings))
        st.session_state.memory_only = tracker.memory_only
        tracker.load()
        if tracker.is_initialized:
            tracker.start_session()
        st.session_state.tracker = tracker

    if "selected_module_id" not in st.session_state:
        tracker = st.session_state.tracker
        point = resume_point(tracker.progress, tracker.curriculum)
        st.session_state.selected_module_id = point.module_id or 1


def show_tracker_error():
    """Non-blocking notice for the last tracker failure."""
    if st.session_state.memory_only:
        st.info("Storage is unavailable. Progress is kept for this session only.")

    error = st.session_state.tracker.error
    if error is None:
        return
    if error.type == "save_failed":
        st.warning("Progress could not be saved and may not persist.")
    else:
        st.warning(error.message)


# -----------------------------------------------------------------------------
# Onboarding
# -----------------------------------------------------------------------------

def render_onboarding():
    """Variant selection for first-time (or reset) learners."""
    st.title("Welcome to the LLM Course")
    st.markdown("Three short modules, from what an LLM is to how one is trained and served.")

    variant = st.radio(
        "Choose your content track",
        [v.value for v in LearnerVariant],
        horizontal=True,
    )
    if st.button("Start learning", type="primary"):
        tracker = st.session_state.tracker
        if st.session_state.memory_only or not tracker.initialize(variant):
            # storage unavailable: continue in memory only
            tracker.load(initial_variant=variant)
        tracker.start_session()
        st.session_state.selected_module_id = 1
        st.rerun()


# -----------------------------------------------------------------------------
# Sidebar: Module List
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with module list and progress."""
    tracker = st.session_state.tracker
    doc = tracker.progress

    st.sidebar.title("🧠 LLM Course")
    st.sidebar.markdown(f"**Progress:** {tracker.overall_completion}%")
    st.sidebar.progress(tracker.overall_completion / 100)
    st.sidebar.divider()

    for summary in module_summaries(doc, tracker.curriculum):
        indicator = get_status_indicator(summary.id, doc, tracker.curriculum)
        label = f"{indicator} {summary.title} ({summary.completed_count}/{summary.total_count})"
        if st.sidebar.button(
            label,
            key=f"module_{summary.id}",
            disabled=summary.status == ModuleStatus.LOCKED,
            use_container_width=True,
        ):
            st.session_state.selected_module_id = summary.id
            st.rerun()

    st.sidebar.divider()
    if has_active_session(doc):
        if st.sidebar.button("End session"):
            tracker.end_session()
            st.rerun()
    elif st.sidebar.button("Start session"):
        tracker.start_session()
        st.rerun()


# -----------------------------------------------------------------------------
# Main Content: Module View
# -----------------------------------------------------------------------------

def render_module_view():
    """Render the selected module's sections with completion controls."""
    tracker = st.session_state.tracker
    doc = tracker.progress
    module_id = st.session_state.selected_module_id
    module = doc.get_module(module_id)
    meta = tracker.curriculum.get_module(module_id)

    st.title(module.title)
    if meta and meta.description:
        st.caption(meta.description)
    st.progress(module.completion_percentage / 100, text=f"{module.completion_percentage}% complete")

    for section in module.sections:
        section_meta = tracker.curriculum.get_section(module_id, section.id)
        col1, col2 = st.columns([8, 2])
        with col1:
            mark = "✓" if section.completed else "○"
            minutes = f" · {section_meta.estimated_minutes} min" if section_meta else ""
            st.markdown(f"{mark} **{section.title}**{minutes}")
        with col2:
            if not section.completed and st.button("Complete", key=f"section_{section.id}"):
                tracker.mark_section_complete(module_id, section.id)
                tracker.award_earned_achievements()
                st.rerun()

    render_navigation_bar(module_id)


def render_navigation_bar(module_id: int):
    """Render navigation bar with prev/next buttons."""
    tracker = st.session_state.tracker
    prev_id = previous_module(module_id)
    next_id = next_module(module_id, tracker.progress, tracker.curriculum)

    st.divider()
    col1, col2, col3 = st.columns([1, 2, 1])

    with col1:
        if prev_id and st.button("← Previous", use_container_width=True):
            st.session_state.selected_module_id = prev_id
            st.rerun()

    with col2:
        st.markdown(f"<center>Module {module_id} of 3</center>", unsafe_allow_html=True)

    with col3:
        if next_id and st.button("Next →", use_container_width=True):
            st.session_state.selected_module_id = next_id
            st.rerun()


def render_achievements():
    """Render unlocked achievements."""
    tracker = st.session_state.tracker
    doc = tracker.progress

    st.divider()
    st.subheader("Achievements")
    if not doc.achievements:
        st.info("Complete modules to earn achievements.")
        return
    for achievement in doc.achievements:
        meta = tracker.catalog.get(achievement.id)
        icon = meta.icon if meta else "🏅"
        st.markdown(f"{icon} **{achievement.title}** · {achievement.unlocked_at:%Y-%m-%d}")


def render_reset():
    """Render progress reset with confirmation."""
    with st.expander("Reset progress"):
        st.markdown("This permanently deletes all saved progress.")
        confirm = st.checkbox("I understand")
        if st.button("Reset", disabled=not confirm):
            if st.session_state.tracker.reset():
                del st.session_state.selected_module_id
            st.rerun()


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    show_tracker_error()

    if not st.session_state.tracker.is_initialized:
        render_onboarding()
        return

    render_sidebar()
    render_module_view()
    render_achievements()
    render_reset()


if __name__ == "__main__":
    main()
