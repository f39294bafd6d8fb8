"""Net Tracker: log practice exams and follow net scores over time."""
import logging
import sys
from pathlib import Path

# Ensure project root is in path
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import plotly.graph_objects as go
import streamlit as st

from db import LOG_LEVEL, get_supabase
from engine import format_net
from tracker.auth import SessionContext, validate_sign_in, validate_sign_up
from tracker.database import DatabaseClient, ServiceError
from tracker.engine import ExamForm, ValidationError, preview_nets, shape_exam
from tracker.history import (
    CHART_VIEWS,
    SERIES_STYLE,
    ExamFilter,
    breakdown_nets,
    chart_rows,
    chart_series,
    compute_stats,
    filter_exams,
    history_frame,
    score_tier,
)
from tracker.models import SUB_SUBJECT_LABELS, SUB_SUBJECTS, ExamKind, ExamResult, Subject

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Net Tracker", layout="wide")

TIER_STYLE = {
    "excellent": "color: #34d399; font-weight: bold",
    "good": "color: #818cf8; font-weight: 600",
    "fair": "color: #fbbf24",
    "low": "color: #94a3b8",
}


def get_db() -> DatabaseClient:
    if "db" not in st.session_state:
        st.session_state["db"] = DatabaseClient(get_supabase())
    return st.session_state["db"]


def load_exams(db: DatabaseClient, ctx: SessionContext) -> list[ExamResult]:
    try:
        return db.list_exams(ctx)
    except ServiceError as e:
        st.error(f"Could not load exams: {e}")
        return []


# ----- Login -----

def render_login(db: DatabaseClient):
    st.title("Net Tracker")
    st.caption("Track your practice exam nets: correct - incorrect / 4")
    login_tab, signup_tab = st.tabs(["Sign in", "Sign up"])

    with login_tab:
        with st.form("login"):
            email = st.text_input("Email", key="login_email")
            password = st.text_input("Password", type="password", key="login_password")
            submitted = st.form_submit_button("Sign in", type="primary")
        if submitted:
            try:
                validate_sign_in(email, password)
                st.session_state["ctx"] = db.sign_in(email.strip(), password)
                st.session_state["flash"] = "Signed in"
                st.rerun()
            except ValidationError as e:
                st.warning(str(e))
            except ServiceError as e:
                st.error(f"Sign-in failed: {e}")

    with signup_tab:
        with st.form("signup"):
            email = st.text_input("Email", key="signup_email")
            password = st.text_input("Password", type="password", key="signup_password")
            confirm = st.text_input("Confirm password", type="password", key="signup_confirm")
            submitted = st.form_submit_button("Create account", type="primary")
        if submitted:
            try:
                validate_sign_up(email, password, confirm)
                st.session_state["ctx"] = db.sign_up(email.strip(), password)
                st.session_state["flash"] = "Account created"
                st.rerun()
            except ValidationError as e:
                st.warning(str(e))
            except ServiceError as e:
                st.error(f"Could not create account: {e}")


# ----- Add exam -----

def pair_inputs(prefix: str, label: str):
    col1, col2 = st.columns(2)
    with col1:
        correct = st.number_input(f"{label} correct", min_value=0, step=1, value=None, key=f"{prefix}-correct")
    with col2:
        incorrect = st.number_input(f"{label} incorrect", min_value=0, step=1, value=None, key=f"{prefix}-incorrect")
    return correct, incorrect


def render_add_exam(db: DatabaseClient, ctx: SessionContext):
    st.header("Add Exam")
    st.caption("Enter correct and incorrect answers. Nets are calculated automatically.")
    nonce = st.session_state.setdefault("form_nonce", 0)

    kind = st.radio(
        "Exam type",
        [ExamKind.FULL, ExamKind.SINGLE_SUBJECT],
        format_func=lambda k: "TYT (all subjects)" if k == ExamKind.FULL else "Branch (single subject)",
        horizontal=True,
        key=f"{nonce}-kind",
    )
    subject = None
    if kind == ExamKind.SINGLE_SUBJECT:
        subject = st.selectbox(
            "Subject",
            list(Subject),
            index=None,
            format_func=lambda s: s.label,
            placeholder="Choose a subject",
            key=f"{nonce}-subject",
        )

    name = st.text_input("Exam name", placeholder="e.g. Publisher X Mock 1", key=f"{nonce}-name")
    form = ExamForm(name=name, kind=kind, subject=subject)

    subjects = list(Subject) if kind == ExamKind.FULL else [subject] if subject else []
    for subj in subjects:
        st.subheader(subj.label)
        form.entries[subj] = pair_inputs(f"{nonce}-{subj.key}", subj.label)
        if subj in SUB_SUBJECTS:
            with st.expander(f"{subj.label} breakdown (optional)"):
                st.caption("Filling any of these replaces the direct entry above.")
                for sub in SUB_SUBJECTS[subj]:
                    form.breakdowns[sub] = pair_inputs(f"{nonce}-{sub}", SUB_SUBJECT_LABELS[sub][0])

    nets = preview_nets(form)
    if subjects:
        cols = st.columns(len(subjects) + 1)
        for col, subj in zip(cols, subjects):
            col.metric(f"{subj.label} net", format_net(nets[subj]))
        total = sum(nets[s] for s in subjects)
        cols[-1].metric("Total net", format_net(total))

    if st.button("Save", type="primary"):
        try:
            record = shape_exam(form)
            db.insert_exam(ctx, record)
        except ValidationError as e:
            st.warning(str(e))
        except ServiceError as e:
            st.error(f"Could not save exam: {e}")
        else:
            st.session_state["form_nonce"] = nonce + 1
            st.session_state["flash"] = f"Saved {record.name} ({format_net(record.total_net)} net)"
            st.rerun()


# ----- Dashboard -----

def render_chart(rows: list[dict], flt: ExamFilter, view: str, average: float):
    series = chart_series(flt, view)
    hover = []
    for row in rows:
        exam = row["exam"]
        lines = [f"<b>{row['exam_name']}</b>", f"{series.label}: {format_net(row[series.field])}"]
        groups = [flt.subject] if flt.kind == ExamKind.SINGLE_SUBJECT else [Subject.SOCIAL, Subject.SCIENCE]
        for group in groups:
            if group in SUB_SUBJECTS:
                lines += [f"  {label}: {format_net(value)}" for label, value in breakdown_nets(exam, group)]
        hover.append("<br>".join(lines))

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=[f"{row['name']} ({row['date']})" for row in rows],
        y=[row[series.field] for row in rows],
        mode="lines+markers",
        fill="tozeroy",
        name=series.label,
        line=dict(color=series.color, width=3),
        hovertext=hover,
        hoverinfo="text",
    ))
    if average > 0 and series.view == "total":
        fig.add_hline(y=average, line_dash="dash", line_color="#64748b", annotation_text="Average")
    fig.update_layout(height=350, margin=dict(t=20, r=30, l=20, b=20), template="plotly_dark")
    st.plotly_chart(fig, use_container_width=True)


def render_detail(exam: ExamResult):
    record = exam.record
    when = exam.created_at.strftime("%d %B %Y") if exam.created_at else ""
    st.markdown(f"**{record.name}** · {when}")
    if record.kind == ExamKind.FULL:
        st.metric("Total net", format_net(record.total_net))
        subjects = list(Subject)
    else:
        subjects = [record.subject]
    for subj in subjects:
        st.write(f"{subj.label}: **{format_net(record.net_for(subj))}**")
        for label, value in breakdown_nets(exam, subj):
            st.write(f"    {label}: {format_net(value)}")


def render_dashboard(db: DatabaseClient, ctx: SessionContext):
    st.header("Dashboard")
    exams = load_exams(db, ctx)

    kind = st.radio(
        "Exams",
        [ExamKind.FULL, ExamKind.SINGLE_SUBJECT],
        format_func=lambda k: "TYT exams" if k == ExamKind.FULL else "Branch exams",
        horizontal=True,
    )
    subject = None
    if kind == ExamKind.SINGLE_SUBJECT:
        subject = st.radio("Subject", list(Subject), format_func=lambda s: s.label, horizontal=True)
    flt = ExamFilter(kind, subject)
    filtered = filter_exams(exams, flt)
    stats = compute_stats(filtered)
    prefix = "Branch " if kind == ExamKind.SINGLE_SUBJECT else ""

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Exams", stats.total_exams)
    col2.metric(f"{prefix}Best net", format_net(stats.best_total_net))
    col3.metric(f"{prefix}Average net", format_net(stats.average_total_net))
    col4.metric(
        f"{prefix}Last exam net",
        format_net(stats.last_exam_net),
        delta=f"{stats.improvement:+.2f} vs previous" if stats.improvement else None,
    )

    if not filtered:
        st.info("No exams yet for this view. Add one from the sidebar.")
        return

    view = "total"
    if kind == ExamKind.FULL:
        view = st.radio("Chart", CHART_VIEWS, format_func=lambda v: SERIES_STYLE[v][0], horizontal=True)
    render_chart(chart_rows(filtered), flt, view, stats.average_total_net)

    st.subheader("History")
    frame = history_frame(filtered, flt)
    st.dataframe(
        frame.style.map(lambda v: TIER_STYLE[score_tier(v, stats.best_total_net)], subset=["Total"]),
        use_container_width=True,
        hide_index=True,
    )

    picked = st.selectbox(
        "Exam details",
        range(len(filtered)),
        index=None,
        format_func=lambda i: f"{filtered[i].record.name} ({format_net(filtered[i].total_net)})",
        placeholder="Choose an exam",
    )
    if picked is not None:
        with st.container(border=True):
            render_detail(filtered[picked])


# ----- Main -----

try:
    db = get_db()
except ValueError as e:
    st.error(f"Could not connect. Check .env (SUPABASE_URL, SUPABASE_KEY). {e}")
    st.stop()

# Re-check the session on every run; an expired session falls back to login
ctx = st.session_state.get("ctx")
try:
    ctx = ctx.refresh(db) if ctx is not None else db.get_current_user()
except ServiceError as e:
    logger.warning("Session check failed: %s", e)
    ctx = None
st.session_state["ctx"] = ctx
if ctx is None:
    render_login(db)
    st.stop()

st.sidebar.title("Net Tracker")
st.sidebar.caption(ctx.email)
page = st.sidebar.radio("Navigate", ["Dashboard", "Add Exam"], label_visibility="collapsed")
if st.sidebar.button("Sign out"):
    try:
        db.sign_out()
    except ServiceError as e:
        st.sidebar.error(f"Sign-out failed: {e}")
    else:
        st.session_state["ctx"] = None
        st.rerun()

flash = st.session_state.pop("flash", None)
if flash:
    st.success(flash)

if page == "Dashboard":
    render_dashboard(db, ctx)
elif page == "Add Exam":
    render_add_exam(db, ctx)
