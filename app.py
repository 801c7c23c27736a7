from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st
from supabase import create_client

from gpa_tracker.config import DATA_FILE, SAVE_DEBOUNCE_SECONDS, configure_logging, supabase_config, supabase_enabled
from gpa_tracker.grades import (
    cumulative_gpa,
    grade_label,
    group_terms_by_year,
    honors_label,
    required_gpa_for_target,
    term_gpa,
    term_honors,
    total_weight,
    transmutation_rows,
    transmute_grade,
    weighted_category_grade,
)
from gpa_tracker.reconcile import MIGRATED, NOTHING_TO_MIGRATE, ReconciliationController, reset_after_logout
from gpa_tracker.records import (
    CGPA_SETTINGS_KEY,
    GRADE_CALCULATOR_KEY,
    GRADE_OPTIONS,
    MAX_CATEGORIES,
    MAX_SUBJECT_NAME,
    MAX_SUBJECTS,
    PASSING_GRADE_PRESETS,
    PROJECTION_SETTINGS_KEY,
    UNIT_OPTIONS,
    new_subject,
    normalize_category,
    term_key,
    term_record,
    validate_course,
    weight_limit_error,
)
from gpa_tracker.session import SaveStatus, WorkingCopies, WriteCoalescer, mark_new_login, take_new_login
from gpa_tracker.storage import LocalJsonStore, SessionStore, SupabaseStore
from gpa_tracker.terms import add_custom_term, available_terms, can_delete_term, delete_custom_term, load_all_summaries

# Session keys that belong to the signed-in (or anonymous) user's view.
# Cleared whenever the identity changes.
USER_VIEW_KEYS = ["_work", "_base", "migration_report", "selected_term"]


# -------------------------------
# Supabase client
# -------------------------------

def _supabase_cfg() -> Dict[str, str]:
    return supabase_config(st.secrets)


def _sb():
    """
    Supabase client stored per Streamlit session (important: don't global-cache it).
    """
    cfg = _supabase_cfg()
    if not supabase_enabled(cfg):
        return None

    prev = st.session_state.get("_sb_client_meta")
    if not prev or prev.get("url") != cfg["url"] or prev.get("anon_key") != cfg["anon_key"]:
        st.session_state["_sb_client"] = create_client(cfg["url"], cfg["anon_key"])
        st.session_state["_sb_client_meta"] = {"url": cfg["url"], "anon_key": cfg["anon_key"]}

    return st.session_state.get("_sb_client")


def _sb_authed():
    sb = _sb()
    if sb is None:
        return None

    sess = st.session_state.get("sb_session") or {}
    at = sess.get("access_token")
    rt = sess.get("refresh_token")
    if at and rt:
        try:
            sb.auth.set_session(at, rt)
        except Exception:
            # Some versions may not support set_session; still ok
            pass

    return sb


# -------------------------------
# Stores
# -------------------------------

def init_app_state():
    desired = "supabase" if supabase_enabled(_supabase_cfg()) else "local"
    if st.session_state.get("storage_mode") != desired:
        st.session_state.storage_mode = desired

    st.session_state.setdefault("current_user", None)        # uuid in supabase mode; name in local
    st.session_state.setdefault("current_username", None)    # email in supabase mode; name in local
    st.session_state.setdefault("sb_session", None)          # {"access_token":..., "refresh_token":...}
    st.session_state.setdefault("coalescer", WriteCoalescer())
    st.session_state.setdefault("save_status", SaveStatus())


def ephemeral_store() -> SessionStore:
    return SessionStore(st.session_state)


def durable_store():
    if st.session_state.get("storage_mode") == "supabase":
        return SupabaseStore(_sb_authed(), _supabase_cfg()["table"])
    return LocalJsonStore(DATA_FILE)


def store_for(user_id: Optional[str]):
    return durable_store() if user_id else ephemeral_store()


def write_unit(user_id: Optional[str], key: str, data: Any) -> bool:
    return store_for(user_id).set(user_id, key, data)


# -------------------------------
# Working copies (edits not yet flushed)
# -------------------------------

def working_copies() -> WorkingCopies:
    return WorkingCopies(st.session_state.setdefault("_work", {}), st.session_state.coalescer)


def read_unit(user_id: Optional[str], key: str) -> Any:
    data, ok = working_copies().read(store_for(user_id), user_id, key)
    if not ok:
        # the next rerun retries the read
        base = st.session_state.setdefault("_base", {})
        for k in [k for k in base if k == key or k.startswith(f"{key}:")]:
            base.pop(k, None)
        st.session_state.save_status.set("Error loading")
        st.error("Could not load your saved data. Changes here are not saved until it loads; retrying on the next update.")
    return data


def update_unit(user_id: Optional[str], key: str, data: Any) -> None:
    working_copies().update(user_id, key, data)


def editor_base(key: str, build) -> pd.DataFrame:
    # data_editor keeps its edits only while its input frame stays the same
    base = st.session_state.setdefault("_base", {})
    if key not in base:
        base[key] = build()
    return base[key]


def _clean_nan(x: Any) -> Any:
    try:
        if pd.isna(x):
            return None
    except (TypeError, ValueError):
        pass
    return x


# -------------------------------
# Identity transitions
# -------------------------------

def handle_identity(user_id: Optional[str]) -> None:
    if st.session_state.get("_identity") != user_id:
        for k in USER_VIEW_KEYS:
            st.session_state.pop(k, None)
        st.session_state["_identity"] = user_id

    controller = st.session_state.get("reconciler")
    if controller is None:
        controller = ReconciliationController(ephemeral_store(), durable_store())
        st.session_state["reconciler"] = controller
    controller.ephemeral = ephemeral_store()
    controller.durable = durable_store()

    new_login = take_new_login(st.session_state) if user_id else False
    if new_login:
        # anonymous edits still waiting for the debounce go to the session first
        st.session_state.coalescer.flush(write_unit, force=True)

    report = controller.observe(user_id, new_login)
    if report:
        st.session_state["migration_report"] = report
        moved = [r for r in report if r["outcome"] == MIGRATED]
        if moved:
            st.toast(f"Moved {len(moved)} item(s) from this browser session into your account.")


def sign_out():
    st.session_state.coalescer.flush(write_unit, force=True)
    st.session_state.coalescer.discard()
    reset_after_logout(
        ephemeral_store(),
        st.session_state,
        ["current_user", "current_username", "sb_session", "reconciler"] + USER_VIEW_KEYS,
    )
    st.session_state.current_user = None
    st.session_state.current_username = None


# -------------------------------
# UI: account (Supabase auth OR local profiles)
# -------------------------------

def user_selector():
    # Supabase mode (real multi-user)
    if st.session_state.get("storage_mode") == "supabase":
        st.sidebar.header("Account")

        sb = _sb_authed()
        if sb is None:
            st.sidebar.error("Supabase client not available. Check secrets and requirements.")
            return

        if st.session_state.get("current_user") and st.session_state.get("current_username"):
            st.sidebar.success(f"Signed in as: {st.session_state.current_username}")
            if st.sidebar.button("Sign out", key="sb_signout"):
                try:
                    sb.auth.sign_out()
                except Exception:
                    pass
                sign_out()
                for k in ["_sb_client", "_sb_client_meta"]:
                    st.session_state.pop(k, None)
                st.rerun()
            return

        st.sidebar.caption("Not signed in: your data lives only in this browser session.")
        mode = st.sidebar.radio("Choose:", ["Log in", "Sign up"], key="sb_mode")
        email = st.sidebar.text_input("Email", key="sb_email").strip()
        password = st.sidebar.text_input("Password", type="password", key="sb_password")

        def _get_attr(obj, name, default=None):
            if isinstance(obj, dict):
                return obj.get(name, default)
            return getattr(obj, name, default)

        if mode == "Log in":
            if st.sidebar.button("Log in", type="primary", key="sb_login_btn"):
                if not email or not password:
                    st.sidebar.error("Enter email and password.")
                    return
                try:
                    res = _sb().auth.sign_in_with_password({"email": email, "password": password})

                    sess = _get_attr(res, "session", None)
                    user = _get_attr(res, "user", None) or _get_attr(sess, "user", None)

                    access = _get_attr(sess, "access_token", None)
                    refresh = _get_attr(sess, "refresh_token", None)

                    uid = _get_attr(user, "id", None)
                    uemail = _get_attr(user, "email", None)

                    if not (uid and uemail and access and refresh):
                        st.sidebar.error("Login failed. Double-check email/password.")
                        return

                    st.session_state.sb_session = {"access_token": str(access), "refresh_token": str(refresh)}
                    st.session_state.current_user = str(uid)
                    st.session_state.current_username = str(uemail)
                    mark_new_login(st.session_state)
                    st.rerun()
                except Exception as e:
                    st.sidebar.error(f"Login failed: {e}")

        else:
            st.sidebar.caption("You may need to confirm your email depending on Supabase Auth settings.")
            if st.sidebar.button("Create account", type="primary", key="sb_signup_btn"):
                if not email or not password:
                    st.sidebar.error("Enter email and password.")
                    return
                try:
                    _ = _sb().auth.sign_up({"email": email, "password": password})
                    st.sidebar.success("Account created. Now log in (and confirm email if required).")
                except Exception as e:
                    st.sidebar.error(f"Sign up failed: {e}")

        return

    # Local profile mode
    st.sidebar.caption("Local mode (not real multi-user). Add Supabase secrets to enable accounts.")
    st.sidebar.header("Profile")

    if st.session_state.get("current_user"):
        st.sidebar.success(f"Using profile: {st.session_state.current_username}")
        if st.sidebar.button("Leave profile", key="local_signout"):
            sign_out()
            st.rerun()
        return

    st.sidebar.caption("No profile selected: your data lives only in this browser session.")
    store = LocalJsonStore(DATA_FILE)
    existing_users = store.users()

    mode = st.sidebar.radio("Choose:", ["Use profile", "New profile"], key="mode_user_selector")

    if mode == "Use profile":
        if existing_users:
            selected = st.sidebar.selectbox("Select your name", existing_users, key="login_select_name")
            if st.sidebar.button("Use this profile", key="login_use_profile"):
                st.session_state.current_user = selected
                st.session_state.current_username = selected
                mark_new_login(st.session_state)
                st.rerun()
        else:
            st.sidebar.info("No profiles yet. Create one below.")

    if mode == "New profile":
        new_name = st.sidebar.text_input("Enter your name", key="new_profile_name")
        if st.sidebar.button("Create profile", key="new_profile_create"):
            name = new_name.strip()
            if not name:
                st.sidebar.error("Please enter a valid name.")
            elif not store.create_user(name):
                st.sidebar.error("Could not create the profile. Check the logs.")
            else:
                st.session_state.current_user = name
                st.session_state.current_username = name
                mark_new_login(st.session_state)
                st.rerun()


# -------------------------------
# UI: GPA (one term)
# -------------------------------

def _courses_frame(courses: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "id": c["id"],
                "Code": c["code"],
                "Name": c["name"],
                "Units": c["units"],
                "Grade": c["grade"],
                "NAS": c["nas"],
            }
            for c in courses
        ],
        columns=["id", "Code", "Name", "Units", "Grade", "NAS"],
    )


def _courses_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    courses = []
    for idx, row in df.iterrows():
        units = _clean_nan(row.get("Units"))
        grade = _clean_nan(row.get("Grade"))
        courses.append({
            "id": _clean_nan(row.get("id")) or f"new-{idx}",
            "code": str(_clean_nan(row.get("Code")) or "").strip(),
            "name": str(_clean_nan(row.get("Name")) or "").strip(),
            "units": int(units) if units is not None else 3,
            "grade": float(grade) if grade is not None else 0.0,
            "nas": bool(_clean_nan(row.get("NAS")) or False),
        })
    return courses


def gpa_view(user_id: Optional[str]):
    K = f"gpa_{user_id or 'anon'}"
    store = store_for(user_id)

    st.header("GPA Calculator")
    st.caption("Enter your courses, units, and grades to calculate your GPA.")

    terms = available_terms(store, user_id)
    selected = st.session_state.get("selected_term", 1)
    if selected not in terms:
        selected = 1

    options = terms + ["➕ Add extra term"]
    choice = st.selectbox(
        "Term",
        options,
        index=terms.index(selected),
        format_func=lambda t: t if isinstance(t, str) else f"Term {t}",
        key=f"{K}_term_select",
    )
    if choice == "➕ Add extra term":
        added = add_custom_term(store, user_id, terms)
        if added is None:
            st.warning("You already have the maximum of 21 terms (or the new term could not be saved).")
        else:
            st.session_state.selected_term = added
            st.session_state.pop(f"{K}_term_select", None)
            st.rerun()
        return

    st.session_state.selected_term = choice
    key = term_key(choice)
    record = read_unit(user_id, key)

    base = editor_base(key, lambda: _courses_frame(record["courses"]))
    edited = st.data_editor(
        base,
        key=f"{K}_editor_{choice}",
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_order=["Code", "Name", "Units", "Grade", "NAS"],
        column_config={
            "Code": st.column_config.TextColumn("Course Code"),
            "Name": st.column_config.TextColumn("Course Name (Optional)"),
            "Units": st.column_config.SelectboxColumn("Units", options=UNIT_OPTIONS, default=3),
            "Grade": st.column_config.SelectboxColumn("Grade", options=GRADE_OPTIONS, default=0.0),
            "NAS": st.column_config.CheckboxColumn("NAS", help="Non-academic subject", default=False),
        },
    )

    exempt = st.checkbox(
        "Flowchart exempt (waive the 12-unit minimum for Dean's List)",
        value=record["isFlowchartExempt"],
        key=f"{K}_exempt_{choice}",
    )

    courses = _courses_from_frame(edited)
    update_unit(user_id, key, term_record(courses, exempt))

    problems = [p for c in courses for p in validate_course(c)]
    for p in problems:
        st.warning(p)

    result = term_gpa(courses)
    honors = term_honors(courses, exempt)

    c1, c2, c3 = st.columns(3)
    with c1:
        st.metric("GPA", f"{result['gpa']:.3f}")
    with c2:
        st.metric("Academic units", f"{result['academicUnits']:g}")
    with c3:
        st.metric("NAS units", f"{result['nonAcademicUnits']:g}")

    label = honors_label(honors)
    if label:
        st.success(f"🎓 {label}")

    st.caption("NAS courses with 0 units are graded Pass (1) / Fail (0).")

    if can_delete_term(choice, terms):
        if st.button(f"🗑️ Delete Term {choice}", key=f"{K}_delete_{choice}"):
            st.session_state.coalescer.cancel(user_id, key)
            if delete_custom_term(store, user_id, choice, terms):
                st.session_state["_work"].pop(key, None)
                st.session_state["_base"].pop(key, None)
                st.session_state.selected_term = choice - 1
                st.session_state.pop(f"{K}_term_select", None)
                st.rerun()
            else:
                st.error("Could not delete the term. Try again.")


# -------------------------------
# UI: Grade calculator
# -------------------------------

def _categories_frame(categories: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"id": c["id"], "Category": c["name"], "Weight": c["weight"], "Score": c["score"]} for c in categories],
        columns=["id", "Category", "Weight", "Score"],
    )


def _categories_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    out = []
    for idx, row in df.iterrows():
        out.append(normalize_category({
            "id": _clean_nan(row.get("id")) or f"new-{idx}",
            "name": _clean_nan(row.get("Category")),
            "weight": _clean_nan(row.get("Weight")),
            "score": _clean_nan(row.get("Score")),
        }))
    return out


def grade_calculator_view(user_id: Optional[str]):
    K = f"gradecalc_{user_id or 'anon'}"

    st.header("Grade Calculator")
    st.caption("Calculate your subject grades based on weighted components.")

    bundle = read_unit(user_id, GRADE_CALCULATOR_KEY)
    subjects = bundle["subjects"]
    ids = [s["id"] for s in subjects]
    active_id = bundle["activeSubjectId"] if bundle["activeSubjectId"] in ids else ids[0]

    col_pick, col_add, col_remove = st.columns([4, 1, 1])
    with col_pick:
        active_id = st.selectbox(
            "Subject",
            ids,
            index=ids.index(active_id),
            format_func=lambda sid: next(s["name"] for s in subjects if s["id"] == sid),
            key=f"{K}_subject",
        )
    with col_add:
        if st.button("➕ Subject", key=f"{K}_add"):
            if len(subjects) >= MAX_SUBJECTS:
                st.warning(f"Maximum of {MAX_SUBJECTS} subjects allowed.")
            else:
                subject = new_subject("New Subject")
                update_unit(user_id, GRADE_CALCULATOR_KEY, {"subjects": subjects + [subject], "activeSubjectId": subject["id"]})
                st.session_state.pop(f"{K}_subject", None)
                st.rerun()
    with col_remove:
        if st.button("🗑️ Remove", key=f"{K}_remove", disabled=len(subjects) <= 1):
            remaining = [s for s in subjects if s["id"] != active_id]
            update_unit(user_id, GRADE_CALCULATOR_KEY, {"subjects": remaining, "activeSubjectId": remaining[0]["id"]})
            st.session_state.pop(f"{K}_subject", None)
            st.rerun()

    subject = next(s for s in subjects if s["id"] == active_id)

    name = st.text_input("Subject name", value=subject["name"], max_chars=MAX_SUBJECT_NAME, key=f"{K}_name_{active_id}")
    passing = st.selectbox(
        "Passing grade",
        PASSING_GRADE_PRESETS,
        index=PASSING_GRADE_PRESETS.index(subject["passingGrade"]),
        format_func=lambda p: f"{p}%",
        key=f"{K}_passing_{active_id}",
    )

    base = editor_base(f"{GRADE_CALCULATOR_KEY}:{active_id}", lambda: _categories_frame(subject["categories"]))
    edited = st.data_editor(
        base,
        key=f"{K}_categories_{active_id}",
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_order=["Category", "Weight", "Score"],
        column_config={
            "Weight": st.column_config.NumberColumn("Weight (%)", min_value=0.0, max_value=100.0, step=1.0),
            "Score": st.column_config.NumberColumn("Score (%)", min_value=0.0, max_value=100.0, step=0.01),
        },
    )
    categories = _categories_from_frame(edited)

    error = weight_limit_error(categories)
    if len(categories) > MAX_CATEGORIES:
        st.error(f"Maximum of {MAX_CATEGORIES} categories allowed per subject.")
    elif error:
        st.error(error)
    else:
        updated = dict(subject, name=name[:MAX_SUBJECT_NAME], passingGrade=passing, categories=categories)
        new_subjects = [updated if s["id"] == active_id else s for s in subjects]
        update_unit(user_id, GRADE_CALCULATOR_KEY, {"subjects": new_subjects, "activeSubjectId": active_id})

    weight = total_weight(categories)
    final = weighted_category_grade(categories)
    if categories and abs(weight - 100) > 1e-9:
        st.info(f"Weights add up to {weight:g}%, not 100%.")

    c1, c2 = st.columns(2)
    with c1:
        st.metric("Final grade", f"{final:.2f}%")
    with c2:
        st.metric("Transmuted grade", f"{transmute_grade(final, passing):.1f}")
    st.caption(f"{passing}% is the minimum to pass (1.0).")

    with st.expander("Transmutation table"):
        st.dataframe(pd.DataFrame(transmutation_rows(passing)), hide_index=True, use_container_width=True)


# -------------------------------
# UI: CGPA
# -------------------------------

def current_summaries(user_id: Optional[str]) -> List[Dict[str, Any]]:
    work = st.session_state.get("_work", {})
    overrides = {k: v for k, v in work.items() if k.startswith("term_")}
    return load_all_summaries(store_for(user_id), user_id, overrides)


def cgpa_view(user_id: Optional[str]):
    K = f"cgpa_{user_id or 'anon'}"

    st.header("Cumulative GPA")

    settings = read_unit(user_id, CGPA_SETTINGS_KEY)
    credited = st.number_input(
        "Credited units (transferred; not counted in GPA)",
        min_value=0,
        value=int(settings["creditedUnits"]),
        step=1,
        key=f"{K}_credited",
    )
    update_unit(user_id, CGPA_SETTINGS_KEY, {"creditedUnits": int(credited)})

    summaries = current_summaries(user_id)
    totals = cumulative_gpa(summaries, credited)

    c1, c2, c3 = st.columns(3)
    with c1:
        st.metric("Active terms", totals["activeTermCount"])
    with c2:
        st.metric("Total units", f"{totals['totalUnitsIncludingCredited']:g}")
    with c3:
        st.metric("CGPA", f"{totals['cgpa']:.3f}")

    for year, terms in group_terms_by_year(summaries).items():
        st.subheader(year)
        cols = st.columns(3)
        for i, term in enumerate(terms):
            with cols[i % 3]:
                st.markdown(f"**Term {term['term']}**" + ("" if term["isActive"] else " · _inactive_"))
                nas = f" ({term['nonAcademicUnits']:g} NAS)" if term["nonAcademicUnits"] > 0 else ""
                st.write(f"GPA **{term['gpa']:.3f}** · Units {term['academicUnits']:g}{nas}")
                label = honors_label(term)
                if label:
                    st.caption(label)
                if term["courses"]:
                    st.dataframe(
                        pd.DataFrame([
                            {
                                "Code": c["code"] or "-",
                                "Units": f"({c['units']})" if c["nas"] else c["units"],
                                "Grade": grade_label(c),
                            }
                            for c in term["courses"]
                        ]),
                        hide_index=True,
                        use_container_width=True,
                    )
                else:
                    st.caption("No courses yet")


# -------------------------------
# UI: Projections
# -------------------------------

def projections_view(user_id: Optional[str]):
    K = f"proj_{user_id or 'anon'}"

    st.header("CGPA Projections")
    st.caption("Calculate the GPA you need in your remaining terms to reach your target CGPA.")

    totals = cumulative_gpa(current_summaries(user_id))
    settings = read_unit(user_id, PROJECTION_SETTINGS_KEY)

    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Current status")
        st.metric("Current CGPA", f"{totals['cgpa']:.3f}")
        st.metric("Units earned", f"{totals['totalAcademicUnits']:g}")
    with c2:
        st.subheader("Target")
        target = st.number_input(
            "Target CGPA",
            min_value=0.0,
            max_value=4.0,
            value=float(settings["targetCGPA"]),
            step=0.1,
            key=f"{K}_target",
        )
        total_units = st.number_input(
            "Total units to graduate",
            min_value=0,
            value=int(settings["totalUnits"]),
            step=1,
            key=f"{K}_total",
        )
    update_unit(user_id, PROJECTION_SETTINGS_KEY, {"targetCGPA": float(target), "totalUnits": int(total_units)})

    proj = required_gpa_for_target(totals["cgpa"], totals["totalAcademicUnits"], target, total_units)

    st.write("---")
    if proj["remainingUnits"] == 0:
        st.info("No remaining units: nothing left to project.")
    elif proj["achievable"]:
        st.success(
            f"You need an average GPA of **{proj['requiredGPA']:.3f}** "
            f"over your remaining **{proj['remainingUnits']:g}** units."
        )
    else:
        st.error(
            f"Target not reachable: it would take an average of **{proj['requiredGPA']:.3f}** "
            f"over **{proj['remainingUnits']:g}** units (possible range is 0.000 - 4.000)."
        )


# -------------------------------
# UI: Settings / export
# -------------------------------

def export_terms_csv(summaries: List[Dict[str, Any]]) -> str:
    rows = [
        {
            "term": t["term"],
            "code": c["code"],
            "name": c["name"],
            "units": c["units"],
            "grade": c["grade"],
            "nas": c["nas"],
        }
        for t in summaries
        for c in t["courses"]
    ]
    return pd.DataFrame(rows, columns=["term", "code", "name", "units", "grade", "nas"]).to_csv(index=False)


def settings_view(user_id: Optional[str]):
    K = f"settings_{user_id or 'anon'}"

    st.header("Data")

    if user_id:
        st.write(f"Saving to your account ({st.session_state.get('storage_mode')}).")
    else:
        st.write("Saving to this browser session only. Sign in to keep your data.")

    summaries = current_summaries(user_id)
    st.download_button(
        "Download all terms CSV",
        data=export_terms_csv(summaries),
        file_name=f"terms_{user_id or 'session'}.csv",
        mime="text/csv",
        key=f"{K}_dl_terms_csv",
    )

    report = st.session_state.get("migration_report")
    if report:
        st.subheader("Last sign-in")
        df = pd.DataFrame(report)
        df = df[df["outcome"] != NOTHING_TO_MIGRATE]
        if df.empty:
            st.caption("Nothing from this browser session needed moving.")
        else:
            st.dataframe(df, hide_index=True, use_container_width=True)


# -------------------------------
# Autosave
# -------------------------------

@st.fragment(run_every=SAVE_DEBOUNCE_SECONDS)
def autosave():
    results = st.session_state.coalescer.flush(write_unit)
    status = st.session_state.save_status
    status.record(results)

    msg = status.current()
    if msg and msg.startswith("Error"):
        st.caption(f":red[{msg}]")
    elif msg:
        st.caption(f"✓ {msg}")
    elif st.session_state.coalescer.pending_keys():
        st.caption("Saving...")


# -------------------------------
# Main
# -------------------------------

def main():
    st.set_page_config(page_title="GPA Tracker", page_icon="🎓", layout="wide")
    configure_logging()
    init_app_state()

    st.title("🎓 GPA Tracker")
    user_selector()

    user_id = st.session_state.current_user
    handle_identity(user_id)

    autosave()

    tabs = st.tabs(["GPA", "Grade Calculator", "CGPA", "Projections", "Data"])

    with tabs[0]:
        gpa_view(user_id)
    with tabs[1]:
        grade_calculator_view(user_id)
    with tabs[2]:
        cgpa_view(user_id)
    with tabs[3]:
        projections_view(user_id)
    with tabs[4]:
        settings_view(user_id)


if __name__ == "__main__":
    main()
