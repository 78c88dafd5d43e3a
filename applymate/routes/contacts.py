"""
Contact Routes Blueprint - networking contacts, interactions, reminders and outreach coach

Interactions, reminders and chat rows cascade when their contact is deleted.
"""

import logging

from flask import Blueprint, g, jsonify, request

from applymate.ai import networking_coach_reply
from applymate.auth import login_required
from applymate.database import get_db, like_pattern, new_id, to_timestamp, utc_now
from applymate.serializers import (
    serialize_chat_message,
    serialize_contact,
    serialize_interaction,
    serialize_reminder,
)
from applymate.validation import (
    CONTACTING_INTERACTIONS,
    parse_bool,
    validate_chat_message,
    validate_contact_create,
    validate_contact_update,
    validate_interaction,
    validate_reminder_create,
    validate_reminder_update,
    validation_error,
)

logger = logging.getLogger(__name__)

contacts_bp = Blueprint("contacts", __name__, url_prefix="/api/contacts")

NO_COMPANY = "No Company"

DEFAULT_UPCOMING_LIMIT = 10
MAX_UPCOMING_LIMIT = 100


def _body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _get_owned_contact(conn, contact_id: str, user_id: str):
    return conn.execute(
        "SELECT * FROM contacts WHERE id = ? AND user_id = ?", (contact_id, user_id)
    ).fetchone()


def _get_owned_reminder(conn, contact_id: str, reminder_id: str, user_id: str):
    """Reminder only if it belongs to this contact of this user."""
    return conn.execute(
        """
        SELECT r.* FROM contact_reminders r
        JOIN contacts c ON c.id = r.contact_id
        WHERE r.id = ? AND r.contact_id = ? AND c.user_id = ?
        """,
        (reminder_id, contact_id, user_id),
    ).fetchone()


@contacts_bp.route("", methods=["GET"])
@login_required
def list_contacts():
    """
    List the caller's contacts.

    Route: GET /api/contacts

    Query Parameters:
        status (str, optional): Filter by status ('all' means no filter)
        search (str, optional): Case-insensitive match on name, company or role
        sort (str, optional): 'newest' (default) or 'oldest'
        groupByCompany (bool, optional): Also return contacts grouped by company

    Each contact carries its latest interaction and its next upcoming
    incomplete reminder.
    """
    try:
        status = request.args.get("status", "")
        search = request.args.get("search", "").strip()
        sort = request.args.get("sort", "newest")
        group_by_company = request.args.get("groupByCompany") == "true"

        query = "SELECT * FROM contacts WHERE user_id = ?"
        params = [g.user.id]

        if status and status != "all":
            query += " AND status = ?"
            params.append(status)

        if search:
            pattern = like_pattern(search)
            query += (
                " AND (CASEFOLD(name) LIKE ? ESCAPE '\\' OR CASEFOLD(company) LIKE ? ESCAPE '\\'"
                " OR CASEFOLD(role) LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern, pattern])

        direction = "ASC" if sort == "oldest" else "DESC"
        query += f" ORDER BY created_at {direction}, rowid {direction}"

        now = utc_now()
        conn = get_db()
        try:
            contacts = []
            for row in conn.execute(query, params).fetchall():
                last_interaction = conn.execute(
                    """
                    SELECT * FROM contact_interactions WHERE contact_id = ?
                    ORDER BY created_at DESC, rowid DESC LIMIT 1
                    """,
                    (row["id"],),
                ).fetchone()
                next_reminder = conn.execute(
                    """
                    SELECT * FROM contact_reminders
                    WHERE contact_id = ? AND completed = 0 AND due_date >= ?
                    ORDER BY due_date ASC LIMIT 1
                    """,
                    (row["id"], now),
                ).fetchone()

                contact = serialize_contact(row)
                contact["lastInteraction"] = (
                    serialize_interaction(last_interaction) if last_interaction else None
                )
                contact["nextReminder"] = serialize_reminder(next_reminder) if next_reminder else None
                contacts.append(contact)
        finally:
            conn.close()

        if group_by_company:
            grouped = {}
            for contact in contacts:
                grouped.setdefault(contact["company"] or NO_COMPANY, []).append(contact)
            return jsonify({"contacts": contacts, "grouped": grouped}), 200

        return jsonify({"contacts": contacts}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/contacts: {e}")
        return jsonify({"error": "Failed to fetch contacts"}), 500


@contacts_bp.route("", methods=["POST"])
@login_required
def create_contact():
    data, errors = validate_contact_create(_body())
    if errors:
        return validation_error(errors)

    try:
        contact_id = new_id()
        now = utc_now()
        conn = get_db()
        try:
            conn.execute(
                """
                INSERT INTO contacts
                    (id, user_id, name, company, role, linkedin_url, email, notes, status,
                     created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    contact_id, g.user.id, data["name"], data["company"], data["role"],
                    data["linkedin_url"], data["email"], data["notes"], data["status"],
                    now, now,
                ),
            )
            conn.commit()
            row = _get_owned_contact(conn, contact_id, g.user.id)
        finally:
            conn.close()

        return jsonify({"contact": serialize_contact(row)}), 201
    except Exception as e:
        logger.error(f"Error in POST /api/contacts: {e}")
        return jsonify({"error": "Failed to create contact"}), 500


@contacts_bp.route("/reminders/upcoming", methods=["GET"])
@login_required
def upcoming_reminders():
    """
    Incomplete reminders across all of the caller's contacts, soonest first.

    Route: GET /api/contacts/reminders/upcoming

    Query Parameters:
        limit (int, optional): Max reminders (default 10)
        includeOverdue (bool, optional): Also include reminders already past due
    """
    try:
        limit = int(request.args.get("limit", DEFAULT_UPCOMING_LIMIT))
    except ValueError:
        return jsonify({"error": "Invalid limit"}), 400
    limit = max(1, min(limit, MAX_UPCOMING_LIMIT))
    include_overdue = parse_bool(request.args.get("includeOverdue", "false"))

    try:
        query = """
            SELECT r.*, c.name AS contact_name, c.company AS contact_company,
                   c.role AS contact_role
            FROM contact_reminders r
            JOIN contacts c ON c.id = r.contact_id
            WHERE c.user_id = ? AND r.completed = 0
        """
        params = [g.user.id]
        if not include_overdue:
            query += " AND r.due_date >= ?"
            params.append(utc_now())
        query += " ORDER BY r.due_date ASC LIMIT ?"
        params.append(limit)

        conn = get_db()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()

        reminders = []
        for row in rows:
            reminder = serialize_reminder(row)
            reminder["contact"] = {
                "id": row["contact_id"],
                "name": row["contact_name"],
                "company": row["contact_company"],
                "role": row["contact_role"],
            }
            reminders.append(reminder)

        return jsonify({"reminders": reminders}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/contacts/reminders/upcoming: {e}")
        return jsonify({"error": "Failed to fetch upcoming reminders"}), 500


@contacts_bp.route("/<contact_id>", methods=["GET"])
@login_required
def get_contact(contact_id):
    """Contact with all interactions (newest first) and reminders (by due date)."""
    try:
        conn = get_db()
        try:
            row = _get_owned_contact(conn, contact_id, g.user.id)
            if not row:
                return jsonify({"error": "Contact not found"}), 404
            interactions = conn.execute(
                "SELECT * FROM contact_interactions WHERE contact_id = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (contact_id,),
            ).fetchall()
            reminders = conn.execute(
                "SELECT * FROM contact_reminders WHERE contact_id = ? ORDER BY due_date ASC",
                (contact_id,),
            ).fetchall()
        finally:
            conn.close()

        contact = serialize_contact(row)
        contact["interactions"] = [serialize_interaction(i) for i in interactions]
        contact["reminders"] = [serialize_reminder(r) for r in reminders]
        return jsonify({"contact": contact}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/contacts/{contact_id}: {e}")
        return jsonify({"error": "Failed to fetch contact"}), 500


@contacts_bp.route("/<contact_id>", methods=["PATCH"])
@login_required
def update_contact(contact_id):
    data, errors = validate_contact_update(_body())
    if errors:
        return validation_error(errors)

    if data.get("last_contacted_at") is not None:
        data["last_contacted_at"] = to_timestamp(data["last_contacted_at"])

    try:
        conn = get_db()
        try:
            if not _get_owned_contact(conn, contact_id, g.user.id):
                return jsonify({"error": "Contact not found"}), 404

            assignments = "".join(f"{column} = ?, " for column in data)
            conn.execute(
                f"UPDATE contacts SET {assignments}updated_at = ? WHERE id = ?",
                [*data.values(), utc_now(), contact_id],
            )
            conn.commit()
            row = _get_owned_contact(conn, contact_id, g.user.id)
        finally:
            conn.close()

        return jsonify({"contact": serialize_contact(row)}), 200
    except Exception as e:
        logger.error(f"Error in PATCH /api/contacts/{contact_id}: {e}")
        return jsonify({"error": "Failed to update contact"}), 500


@contacts_bp.route("/<contact_id>", methods=["DELETE"])
@login_required
def delete_contact(contact_id):
    try:
        conn = get_db()
        try:
            if not _get_owned_contact(conn, contact_id, g.user.id):
                return jsonify({"error": "Contact not found"}), 404
            conn.execute("DELETE FROM contacts WHERE id = ?", (contact_id,))
            conn.commit()
        finally:
            conn.close()
        return jsonify({"message": "Contact deleted"}), 200
    except Exception as e:
        logger.error(f"Error in DELETE /api/contacts/{contact_id}: {e}")
        return jsonify({"error": "Failed to delete contact"}), 500


@contacts_bp.route("/<contact_id>/interactions", methods=["GET"])
@login_required
def list_interactions(contact_id):
    try:
        conn = get_db()
        try:
            if not _get_owned_contact(conn, contact_id, g.user.id):
                return jsonify({"error": "Contact not found"}), 404
            rows = conn.execute(
                "SELECT * FROM contact_interactions WHERE contact_id = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (contact_id,),
            ).fetchall()
        finally:
            conn.close()
        return jsonify({"interactions": [serialize_interaction(r) for r in rows]}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/contacts/{contact_id}/interactions: {e}")
        return jsonify({"error": "Failed to fetch interactions"}), 500


@contacts_bp.route("/<contact_id>/interactions", methods=["POST"])
@login_required
def create_interaction(contact_id):
    """
    Log an interaction.

    Types that mean the contact was actually reached (messaged, replied,
    scheduled_call, met, connected) also bump lastContactedAt.
    """
    data, errors = validate_interaction(_body())
    if errors:
        return validation_error(errors)

    try:
        conn = get_db()
        try:
            if not _get_owned_contact(conn, contact_id, g.user.id):
                return jsonify({"error": "Contact not found"}), 404

            interaction_id = new_id()
            now = utc_now()
            conn.execute(
                """
                INSERT INTO contact_interactions (id, contact_id, type, notes, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (interaction_id, contact_id, data["type"], data["notes"], now),
            )
            if data["type"].lower() in CONTACTING_INTERACTIONS:
                conn.execute(
                    "UPDATE contacts SET last_contacted_at = ?, updated_at = ? WHERE id = ?",
                    (now, now, contact_id),
                )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM contact_interactions WHERE id = ?", (interaction_id,)
            ).fetchone()
        finally:
            conn.close()

        return jsonify({"interaction": serialize_interaction(row)}), 201
    except Exception as e:
        logger.error(f"Error in POST /api/contacts/{contact_id}/interactions: {e}")
        return jsonify({"error": "Failed to create interaction"}), 500


@contacts_bp.route("/<contact_id>/reminders", methods=["GET"])
@login_required
def list_reminders(contact_id):
    try:
        conn = get_db()
        try:
            if not _get_owned_contact(conn, contact_id, g.user.id):
                return jsonify({"error": "Contact not found"}), 404
            rows = conn.execute(
                "SELECT * FROM contact_reminders WHERE contact_id = ? ORDER BY due_date ASC",
                (contact_id,),
            ).fetchall()
        finally:
            conn.close()
        return jsonify({"reminders": [serialize_reminder(r) for r in rows]}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/contacts/{contact_id}/reminders: {e}")
        return jsonify({"error": "Failed to fetch reminders"}), 500


@contacts_bp.route("/<contact_id>/reminders", methods=["POST"])
@login_required
def create_reminder(contact_id):
    data, errors = validate_reminder_create(_body())
    if errors:
        return validation_error(errors)

    try:
        conn = get_db()
        try:
            if not _get_owned_contact(conn, contact_id, g.user.id):
                return jsonify({"error": "Contact not found"}), 404

            reminder_id = new_id()
            now = utc_now()
            conn.execute(
                """
                INSERT INTO contact_reminders
                    (id, contact_id, title, description, due_date, completed, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (
                    reminder_id, contact_id, data["title"], data["description"],
                    to_timestamp(data["due_date"]), now, now,
                ),
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM contact_reminders WHERE id = ?", (reminder_id,)
            ).fetchone()
        finally:
            conn.close()

        return jsonify({"reminder": serialize_reminder(row)}), 201
    except Exception as e:
        logger.error(f"Error in POST /api/contacts/{contact_id}/reminders: {e}")
        return jsonify({"error": "Failed to create reminder"}), 500


@contacts_bp.route("/<contact_id>/reminders/<reminder_id>", methods=["PATCH"])
@login_required
def update_reminder(contact_id, reminder_id):
    data, errors = validate_reminder_update(_body())
    if errors:
        return validation_error(errors)

    if "due_date" in data:
        data["due_date"] = to_timestamp(data["due_date"])
    if "completed" in data:
        data["completed"] = int(data["completed"])

    try:
        conn = get_db()
        try:
            if not _get_owned_reminder(conn, contact_id, reminder_id, g.user.id):
                return jsonify({"error": "Reminder not found"}), 404

            assignments = "".join(f"{column} = ?, " for column in data)
            conn.execute(
                f"UPDATE contact_reminders SET {assignments}updated_at = ? WHERE id = ?",
                [*data.values(), utc_now(), reminder_id],
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM contact_reminders WHERE id = ?", (reminder_id,)
            ).fetchone()
        finally:
            conn.close()

        return jsonify({"reminder": serialize_reminder(row)}), 200
    except Exception as e:
        logger.error(f"Error in PATCH /api/contacts/{contact_id}/reminders/{reminder_id}: {e}")
        return jsonify({"error": "Failed to update reminder"}), 500


@contacts_bp.route("/<contact_id>/reminders/<reminder_id>", methods=["DELETE"])
@login_required
def delete_reminder(contact_id, reminder_id):
    try:
        conn = get_db()
        try:
            if not _get_owned_reminder(conn, contact_id, reminder_id, g.user.id):
                return jsonify({"error": "Reminder not found"}), 404
            conn.execute("DELETE FROM contact_reminders WHERE id = ?", (reminder_id,))
            conn.commit()
        finally:
            conn.close()
        return jsonify({"message": "Reminder deleted"}), 200
    except Exception as e:
        logger.error(f"Error in DELETE /api/contacts/{contact_id}/reminders/{reminder_id}: {e}")
        return jsonify({"error": "Failed to delete reminder"}), 500


@contacts_bp.route("/<contact_id>/chat", methods=["GET"])
@login_required
def get_contact_chat(contact_id):
    try:
        conn = get_db()
        try:
            if not _get_owned_contact(conn, contact_id, g.user.id):
                return jsonify({"error": "Contact not found"}), 404
            rows = conn.execute(
                "SELECT * FROM contact_chat_messages WHERE contact_id = ? "
                "ORDER BY created_at ASC, rowid ASC",
                (contact_id,),
            ).fetchall()
        finally:
            conn.close()
        return jsonify({"messages": [serialize_chat_message(r) for r in rows]}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/contacts/{contact_id}/chat: {e}")
        return jsonify({"error": "Failed to fetch chat messages"}), 500


def _store_contact_message(conn, contact_id: str, role: str, message: str):
    message_id = new_id()
    conn.execute(
        """
        INSERT INTO contact_chat_messages (id, contact_id, role, message, created_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (message_id, contact_id, role, message, utc_now()),
    )
    conn.commit()
    return conn.execute(
        "SELECT * FROM contact_chat_messages WHERE id = ?", (message_id,)
    ).fetchone()


@contacts_bp.route("/<contact_id>/chat", methods=["POST"])
@login_required
def post_contact_chat(contact_id):
    """
    Send a message to the networking coach.

    The message is always stored as a user turn; only role=user asks the coach.
    """
    data, errors = validate_chat_message(_body())
    if errors:
        return validation_error(errors)

    try:
        conn = get_db()
        try:
            contact = _get_owned_contact(conn, contact_id, g.user.id)
            if not contact:
                return jsonify({"error": "Contact not found"}), 404

            user_message = _store_contact_message(conn, contact_id, "user", data["message"])
            if data["role"] != "user":
                return jsonify({"messages": [serialize_chat_message(user_message)]}), 201

            history = [
                dict(r) for r in conn.execute(
                    "SELECT role, message FROM contact_chat_messages WHERE contact_id = ? "
                    "ORDER BY created_at ASC, rowid ASC",
                    (contact_id,),
                ).fetchall()
            ]
        finally:
            conn.close()

        reply = networking_coach_reply(dict(contact), history, data["message"])

        conn = get_db()
        try:
            assistant_message = _store_contact_message(conn, contact_id, "assistant", reply)
        finally:
            conn.close()

        return jsonify({
            "messages": [
                serialize_chat_message(user_message),
                serialize_chat_message(assistant_message),
            ]
        }), 201
    except Exception as e:
        logger.error(f"Error in POST /api/contacts/{contact_id}/chat: {e}")
        return jsonify({"error": "Failed to process chat message"}), 500
