"""
Networking Coach Prompt Template
"""

from typing import Any, Dict, List


def build_contact_card(contact: Dict[str, Any]) -> str:
    """Render a contact row as the plain-text card the coach sees."""
    return "\n".join([
        f"Contact Name: {contact.get('name', '')}",
        f"Company: {contact.get('company') or 'Unknown'}",
        f"Role: {contact.get('role') or 'Unknown'}",
        f"LinkedIn: {contact.get('linkedin_url') or 'Not provided'}",
        f"Email: {contact.get('email') or 'Not provided'}",
        f"Notes: {contact.get('notes') or 'None'}",
        f"Status: {contact.get('status', 'not_contacted')}",
        f"Last Contacted: {contact.get('last_contacted_at') or 'Never'}",
    ])


def build_networking_coach_prompt(
    contact: Dict[str, Any], history: List[Dict[str, Any]], message: str
) -> str:
    """
    Build the prompt for the networking outreach coach.

    Args:
        contact: Contact row
        history: Stored chat messages to include, oldest first
        message: The user's current message

    Returns:
        str: Formatted prompt string ending with an open "Assistant:" turn
    """
    conversation = "\n".join(
        f"{'User' if m['role'] == 'user' else 'Assistant'}: {m['message']}" for m in history
    )
    previous = f"Previous conversation:\n{conversation}\n\n" if conversation else ""

    system_prompt = f"""You are an AI assistant helping with networking outreach. The user is asking for help crafting messages to reach out to contacts during their job search.

Contact Information:
{build_contact_card(contact)}

{previous}Provide helpful, personalized, and professional advice for networking outreach. Keep responses concise and actionable."""

    return f"{system_prompt}\n\nUser: {message}\n\nAssistant:"
