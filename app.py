"""
app.py
Streamlit KV Fitness gym console (owner-only).
Run: streamlit run app.py
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pandas as pd
import streamlit as st

import auth
import config
import db
import reports
import utils
from logger import setup_logger
from models import PLAN_DURATIONS, Gender, Member, Notification, PaymentStatus
from services import GymService
from store import SyncStore
from sync import LocalState

st.set_page_config(page_title="KV Fitness Gym", layout="wide")

GENDERS = [g.value for g in Gender]
PAYMENT_STATUSES = [p.value for p in PaymentStatus]
PLANS = list(PLAN_DURATIONS.keys())


def init_once():
    setup_logger(config.log_level(), config.log_file())
    auth.ensure_admin(config.db_file())


def require_login():
    if "logged_in" not in st.session_state:
        st.session_state.logged_in = False
    if "username" not in st.session_state:
        st.session_state.username = None


def logout():
    st.session_state.logged_in = False
    st.session_state.username = None
    st.success("Logged out.")


def get_service() -> GymService:
    """Per-session store view + local state; picks up other sessions' writes on every rerun."""
    if "service" not in st.session_state:
        sync_store = SyncStore(config.db_file())
        st.session_state.service = GymService(sync_store, LocalState().attach(sync_store))
    service = st.session_state.service
    service.store.poll()
    return service


def flash(note: Notification):
    st.session_state.flash = note


def show_flash():
    note = st.session_state.pop("flash", None)
    if note is None:
        return
    if note.level == "error":
        st.error(note.message)
    elif note.level == "info":
        st.info(note.message)
    else:
        st.success(note.message)


def money(amount) -> str:
    return utils.format_currency(amount, config.currency_symbol())


def login_screen():
    st.title("🔐 KV Fitness Owner Login")

    col1, col2 = st.columns([1, 1])
    with col1:
        username = st.text_input("Username", value=auth.DEFAULT_USERNAME)
        password = st.text_input("Password", type="password")
        if st.button("Login", type="primary"):
            if auth.login(username.strip(), password, config.db_file()):
                st.session_state.logged_in = True
                st.session_state.username = username.strip()
                st.rerun()
            else:
                st.error("Invalid username or password.")

    with col2:
        st.info(
            "First run creates a default owner account:\n\n"
            "- username: **admin**\n"
            "- password: **admin123**\n\n"
            "You will be forced to change it on first login."
        )


def password_form() -> bool:
    p1 = st.text_input("New password", type="password")
    p2 = st.text_input("Confirm new password", type="password")
    if st.button("Update password", type="primary"):
        errors = auth.password_errors(p1, p2)
        for e in errors:
            st.error(e)
        if not errors:
            auth.change_password(st.session_state.username, p1, config.db_file())
            st.success("Password updated.")
            return True
    return False


def force_change_password_screen():
    st.title("⚠️ Change Password (Required)")
    st.warning("You must change the default password before using the app.")
    if password_form():
        st.rerun()


# ---------- Forms ----------

def member_fields(existing: Member | None = None, key: str = "reg") -> dict:
    """Render the member form fields and return the submitted payload."""
    col1, col2, col3 = st.columns(3)
    with col1:
        full_name = st.text_input("Full name", value=existing.full_name if existing else "", key=f"{key}_name")
        age = st.number_input("Age", min_value=1, max_value=120, step=1,
                              value=max(1, int(existing.age)) if existing else 18, key=f"{key}_age")
        gender = st.selectbox("Gender", GENDERS,
                              index=GENDERS.index(existing.gender) if existing and existing.gender in GENDERS else 0,
                              key=f"{key}_gender")
        contact = st.text_input("Contact number (optional)",
                                value=(existing.contact_number or "") if existing else "", key=f"{key}_contact")

    with col2:
        plan = st.selectbox("Membership plan", PLANS,
                            index=PLANS.index(existing.membership_plan) if existing and existing.membership_plan in PLANS else 1,
                            key=f"{key}_plan")
        start = st.date_input("Start date",
                              value=utils.safe_date(existing.start_date) if existing and utils.safe_date(existing.start_date) else date.today(),
                              key=f"{key}_start").isoformat()
        auto_end = utils.parse_iso(utils.calc_end_date(start, plan))
        end = st.date_input("End date (auto-calculated, editable)",
                            value=utils.safe_date(existing.end_date) if existing and utils.safe_date(existing.end_date) else auto_end,
                            key=f"{key}_end").isoformat()

    with col3:
        gym_fees = st.number_input("Gym fees", min_value=0.0, step=100.0,
                                   value=float(existing.gym_fees) if existing else 0.0, key=f"{key}_fees")
        status = st.selectbox("Payment status", PAYMENT_STATUSES,
                              index=PAYMENT_STATUSES.index(existing.payment_status) if existing and existing.payment_status in PAYMENT_STATUSES else 0,
                              key=f"{key}_status")
        amount_paid = st.number_input("Amount paid", min_value=0.0, step=100.0,
                                      value=float(existing.amount_paid) if existing else 0.0, key=f"{key}_paid")
        expected = None
        if status != PaymentStatus.PAID.value:
            current = utils.safe_date(existing.expected_payment_date) if existing else None
            expected = st.date_input("Expected payment date", value=current or date.today(), key=f"{key}_expected").isoformat()

    remarks = st.text_area("Remarks", value=existing.remarks if existing else "", key=f"{key}_remarks")

    return dict(
        full_name=full_name.strip(), age=int(age), gender=gender, contact_number=contact.strip() or None,
        membership_plan=plan, start_date=start, end_date=end, gym_fees=float(gym_fees),
        payment_status=status, amount_paid=float(amount_paid), expected_payment_date=expected,
        remarks=remarks.strip(),
    )


def photo_input(key: str) -> str | None:
    upload = st.file_uploader("Photo (optional)", type=["jpg", "jpeg", "png"], key=key)
    if upload is None:
        return None
    return utils.image_to_data_url(upload.getvalue(), upload.type or "image/jpeg")


def show_errors(errors: list[str]) -> bool:
    for e in errors:
        st.error(e)
    return bool(errors)


# ---------- Pages ----------

def registration_page(service: GymService):
    st.header("⚡ Registration")

    payload = member_fields()
    photo = photo_input("reg_photo")

    if st.button("Register member", type="primary"):
        errors = utils.validate_member_inputs(
            payload["full_name"], payload["age"], payload["gym_fees"], payload["amount_paid"],
            payload["start_date"], payload["end_date"],
        )
        if show_errors(errors):
            return
        payload["photo"] = photo
        flash(service.register_member(payload))
        st.session_state.page = "Members"
        st.rerun()


def filter_members(members: list[Member], search: str, status_filter: str) -> list[Member]:
    today = date.today()
    q = search.strip().lower()
    out = []
    for m in members:
        if q and q not in m.full_name.lower() and q not in m.id.lower() and q not in (m.contact_number or ""):
            continue
        if status_filter == "active" and not reports.is_active(m, today):
            continue
        if status_filter == "expired" and not reports.is_expired(m, today):
            continue
        out.append(m)
    return out


def member_detail(service: GymService, member: Member):
    st.subheader(f"{member.full_name} ({member.id})")

    col1, col2 = st.columns([1, 3])
    with col1:
        if member.photo:
            st.image(utils.data_url_to_bytes(member.photo), width=160)
        else:
            st.caption("No photo.")
        photo = photo_input(f"photo_{member.id}")
        if photo and st.button("Save photo"):
            flash(service.attach_photo(member.id, photo))
            st.rerun()
    with col2:
        st.write(
            f"Plan: **{member.membership_plan}** | {member.start_date} → {member.end_date} | "
            f"Fees: **{money(member.gym_fees)}** | Paid: **{money(member.amount_paid)}** | "
            f"Due: **{money(member.due_amount)}** | Registered: {member.registration_date[:10]}"
        )
        supplements = service.state.supplements_for(member.id)
        if supplements:
            st.dataframe(reports.supplements_frame(supplements), use_container_width=True, hide_index=True)
        else:
            st.caption("No supplements for this member.")

    c1, c2 = st.columns(2)
    with c1:
        if st.button("Edit"):
            st.session_state.edit_member_id = member.id
            st.rerun()
    with c2:
        delete_confirm = st.checkbox("Confirm delete (also removes supplements)", value=False, key="del_confirm")
        if st.button("Delete", type="secondary", disabled=not delete_confirm):
            flash(service.delete_member(member.id))
            st.session_state.edit_member_id = None
            st.rerun()

    if st.session_state.get("edit_member_id") == member.id:
        st.divider()
        st.subheader(f"✏️ Edit Member (ID: {member.id})")
        payload = member_fields(existing=member, key=f"edit_{member.id}")
        errors = utils.validate_member_inputs(
            payload["full_name"], payload["age"], payload["gym_fees"], payload["amount_paid"],
            payload["start_date"], payload["end_date"],
        )
        show_errors(errors)
        # due_amount is editable on its own; it is not recomputed from fees on edit
        due = st.number_input("Due amount", value=float(member.due_amount), step=100.0, key=f"edit_{member.id}_due")
        c1, c2 = st.columns(2)
        with c1:
            if st.button("Save", type="primary", disabled=bool(errors)):
                flash(service.update_member(replace(member, due_amount=float(due), **payload)))
                st.session_state.edit_member_id = None
                st.rerun()
        with c2:
            if st.button("Cancel edit"):
                st.session_state.edit_member_id = None
                st.rerun()


def members_page(service: GymService):
    st.header("👤 Members")

    with st.sidebar:
        st.subheader("Search & Filters")
        search = st.text_input("Search (name/ID/contact)")
        status_filter = st.selectbox("Status", ["All", "active", "expired"])

    members = filter_members(service.state.members.all(), search, status_filter)
    st.dataframe(reports.members_frame(members), use_container_width=True, hide_index=True)

    st.divider()

    ids = [m.id for m in members]
    selected_id = st.selectbox("Member ID", options=["(none)"] + ids)
    if selected_id != "(none)":
        member = service.state.members.get(selected_id)
        if member:
            member_detail(service, member)


def supplements_page(service: GymService):
    st.header("🧬 Supplements")

    members = service.state.members.all()
    if not members:
        st.info("No members yet. Register a member first.")
    else:
        st.subheader("Add supplement")
        options = {f"{m.full_name} ({m.id})": m.id for m in members}
        c1, c2, c3 = st.columns(3)
        with c1:
            label = st.selectbox("Member", list(options.keys()))
            purchase_date = st.date_input("Purchase date", value=date.today()).isoformat()
        with c2:
            amount = st.number_input("Supplement amount", min_value=0.0, step=100.0)
            status = st.selectbox("Payment status", PAYMENT_STATUSES, key="sup_status")
        with c3:
            paid = st.number_input("Amount paid", min_value=0.0, step=100.0, key="sup_paid")
            expected = None
            if status != PaymentStatus.PAID.value:
                expected = st.date_input("Expected payment date", value=date.today(), key="sup_expected").isoformat()
        remarks = st.text_input("Remarks", value="")

        member_id = options[label]
        if st.button("Add supplement", type="primary"):
            if not show_errors(utils.validate_supplement_inputs(member_id, amount, paid, purchase_date)):
                flash(service.add_supplement(dict(
                    member_id=member_id, purchase_date=purchase_date, supplement_amount=float(amount),
                    payment_status=status, amount_paid=float(paid), expected_payment_date=expected,
                    remarks=remarks.strip(),
                )))
                st.rerun()

    st.divider()
    st.subheader("All supplements")
    st.dataframe(reports.supplements_frame(service.state.supplements.all()), use_container_width=True, hide_index=True)


def reports_page(service: GymService):
    st.header("📊 Reports")

    members = service.state.members.all()
    supplements = service.state.supplements.all()
    today = date.today()
    stats = reports.compute_report_stats(members, supplements, today)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("New members (this month)", stats.new_members)
    c2.metric("Active members", stats.active_members)
    c3.metric("Expired members", stats.expired_members)
    c4.metric("Supplements sold", stats.supplements_sold)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Gym fees collected", money(stats.gym_collected))
    c2.metric("Gym fees due", money(stats.gym_due))
    c3.metric("Supplement sales", money(stats.supplement_sales))
    c4.metric("Supplement dues", money(stats.supplement_due))

    st.divider()

    window = config.expiry_window_days()
    st.subheader(f"Expiring soon (next {window} days)")
    soon = reports.expiring_soon(members, today, window)
    if soon:
        st.dataframe(pd.DataFrame([{"id": m.id, "full_name": m.full_name, "contact_number": m.contact_number,
                                    "end_date": m.end_date} for m in soon]),
                     use_container_width=True, hide_index=True)
    else:
        st.caption(f"No members expiring in the next {window} days.")

    st.subheader("Outstanding dues")
    dues = reports.dues_frame(members, supplements)
    if dues.empty:
        st.caption("No outstanding dues.")
    else:
        st.dataframe(dues, use_container_width=True, hide_index=True)

    st.subheader("Collections by month")
    st.dataframe(reports.collections_by_month(members, supplements), use_container_width=True, hide_index=True)

    st.divider()

    st.subheader("Export to CSV")
    c1, c2 = st.columns(2)
    with c1:
        st.download_button("Download members.csv", data=reports.to_csv_bytes(reports.members_frame(members)),
                           file_name="members.csv", mime="text/csv", disabled=not members)
    with c2:
        st.download_button("Download supplements.csv",
                           data=reports.to_csv_bytes(reports.supplements_frame(supplements)),
                           file_name="supplements.csv", mime="text/csv", disabled=not supplements)


def settings_page(service: GymService):
    st.header("⚙️ Settings")

    st.subheader("Change password")
    password_form()

    st.divider()

    st.subheader("Peer sync")
    peers = config.peer_files()
    if not peers:
        st.caption("No peers configured (set KV_PEERS to a comma-separated list of replica files).")
    else:
        st.write(", ".join(str(p) for p in peers))
        if st.button("Sync now"):
            pulled = 0
            for path in peers:
                peer = SyncStore(path)
                pulled += service.store.sync_with(peer)
                peer.close()
            flash(Notification(f"Sync complete: {pulled} change(s) received.", "info"))
            st.rerun()

    st.divider()

    st.subheader("Sample data")
    st.caption("Register 3 sample members + a few supplements for testing (adds new records each run).")
    if st.button("Insert sample data"):
        utils.insert_sample_data(service)
        flash(Notification("Sample data inserted.", "success"))
        st.rerun()


def main_app():
    service = get_service()

    st.sidebar.title("🏋️ KV Fitness Gym")
    st.sidebar.caption("Train Hard. Stay Fit.")
    st.sidebar.caption(f"Logged in as: {st.session_state.username}")

    pages = ["Registration", "Members", "Supplements", "Reports", "Settings"]
    if "page" not in st.session_state:
        st.session_state.page = "Registration"
    st.session_state.page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page))

    if st.sidebar.button("Logout"):
        logout()
        st.rerun()

    show_flash()

    if st.session_state.page == "Registration":
        registration_page(service)
    elif st.session_state.page == "Members":
        members_page(service)
    elif st.session_state.page == "Supplements":
        supplements_page(service)
    elif st.session_state.page == "Reports":
        reports_page(service)
    elif st.session_state.page == "Settings":
        settings_page(service)


# --------- App entry ---------

def run():
    init_once()
    require_login()

    if not st.session_state.logged_in:
        login_screen()
        return

    # Force password change on first login after DB creation
    if db.is_force_password_change(config.db_file()):
        force_change_password_screen()
        return

    main_app()


if __name__ == "__main__":
    run()
