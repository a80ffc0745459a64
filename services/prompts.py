"""Prompt templates and canned fallback texts for the LLM-backed features."""

from typing import Any, Dict, List, Optional

# Assist

ANALYST_SYSTEM = (
    "You are an IT incident analyst assistant. Your job is to help identify similar past issues "
    "and suggest solutions based on historical data. Be concise and practical."
)

ASSIST_SYSTEM = (
    "You are an expert IT incident analyst helping users write better Root Cause Analysis (RCA) "
    "documents. Provide practical, concise suggestions. Do not use markdown formatting."
)

VALIDATE_SYSTEM = (
    'You are an IT incident analysis expert. Determine if a stated "root cause" is actually a '
    "root cause or if it's really just a symptom. Be direct and concise."
)

SUMMARY_SYSTEM = (
    "You are a technical writer. Create concise, professional incident summaries suitable for "
    "stakeholder communication."
)

AI_UNAVAILABLE_SUGGESTION = (
    "AI suggestions unavailable. Configure ANTHROPIC_API_KEY to enable AI features."
)

DEFAULT_FIELD_TIPS = {
    "title": "Consider making the title more specific. Include the affected system and impact.",
    "symptoms": "List observable symptoms: error messages, performance metrics, user reports.",
    "rootCause": 'Identify the underlying technical reason. Ask "why" 5 times to dig deeper.',
    "solution": "Document step-by-step resolution. Include commands, configurations, or code changes.",
    "prevention": "Consider monitoring, alerts, or process changes to prevent recurrence.",
}
GENERIC_FIELD_TIP = "Provide clear, specific details."

SYMPTOM_KEYWORDS = ("error", "failed", "slow", "down", "not working", "timeout", "crash")
LIKELY_SYMPTOM_FEEDBACK = (
    'This might be a symptom rather than a root cause. Try asking "why did this happen?" to dig deeper.'
)
LIKELY_ROOT_CAUSE_FEEDBACK = "This looks like it could be a valid root cause."


def similarity_prompt(title: Optional[str], symptoms: Optional[str],
                      records: List[Dict[str, Any]]) -> str:
    if records:
        context = "\n---\n".join(
            f"Title: {r['title']}\n"
            f"Category: {r['category']}\n"
            f"Symptoms: {r['symptoms']}\n"
            f"Root Cause: {r['rootCause']}\n"
            f"Solution: {r['solution']}"
            for r in records
        )
    else:
        context = "No existing RCAs found in the database."

    return f"""A user is reporting a new issue:
Title: {title or 'Not provided'}
Symptoms: {symptoms or 'Not provided'}

Here are potentially similar past RCAs from our database:
{context}

Please analyze and provide:
1. Are any of the existing RCAs similar to this new issue? (Yes/No and brief explanation)
2. If similar issues exist, what was the likely root cause?
3. What solution would you suggest based on past incidents?
4. Any additional investigation steps recommended?

Keep your response brief and actionable."""


def assist_prompt(field: str, value: str, context: Optional[str]) -> str:
    if field == "title":
        return f"""The user entered this issue title: "{value}"

Please:
1. Suggest a clearer, more specific title if needed
2. Identify if important details are missing (affected system, impact, timeframe)
3. Keep suggestions brief"""

    if field == "symptoms":
        return f"""The user described these symptoms: "{value}"

Context: {context or 'None provided'}

Please:
1. Identify if symptoms are clear and measurable
2. Suggest additional symptoms to document
3. Distinguish symptoms from root causes if confused"""

    if field == "rootCause":
        return f"""The user identified this root cause: "{value}"

Symptoms were: {context or 'Not provided'}

Please:
1. Check if this is truly a root cause or just another symptom
2. Suggest ways to verify this root cause
3. If it looks like a symptom, suggest what the actual root cause might be
4. Warn if the root cause seems incomplete"""

    if field == "solution":
        return f"""The user documented this solution: "{value}"

Root cause was: {context or 'Not provided'}

Please:
1. Check if the solution addresses the root cause
2. Suggest any missing steps
3. Recommend verification steps"""

    if field == "prevention":
        return f"""The user suggested this prevention: "{value}"

Root cause was: {context or 'Not provided'}

Please:
1. Evaluate if prevention is practical
2. Suggest additional preventive measures
3. Recommend monitoring or alerts"""

    return f'Help improve this RCA field ({field}): "{value}"'


def validate_root_cause_prompt(root_cause: str, symptoms: Optional[str]) -> str:
    return f"""Stated Root Cause: "{root_cause}"
Related Symptoms: "{symptoms or 'Not provided'}"

Analyze:
1. Is this truly a ROOT CAUSE (the underlying reason) or is it actually a SYMPTOM (an observable effect)?
2. Confidence level (High/Medium/Low)
3. If it's a symptom, suggest what the actual root cause might be
4. Provide a one-line recommendation

Format your response as:
VERDICT: [Root Cause / Symptom / Unclear]
CONFIDENCE: [High/Medium/Low]
REASONING: [Brief explanation]
SUGGESTION: [What to do next]"""


def summary_prompt(record: Dict[str, Any]) -> str:
    return f"""Create a brief executive summary for this incident:

Title: {record['title']}
Category: {record['category']}
Severity: {record['severity']}
Symptoms: {record['symptoms']}
Root Cause: {record['rootCause']}
Solution: {record['solution']}
Prevention: {record['prevention']}

Provide a 3-4 sentence summary suitable for a status update or incident report."""


def basic_summary(record: Dict[str, Any]) -> str:
    return (
        f"Issue: {record['title']}\n"
        f"Category: {record['category']}\n"
        f"Root Cause: {record['rootCause']}\n"
        f"Resolution: {record['solution']}"
    )


# Problem solver

SOLVER_SYSTEM = """You are an expert IT support assistant. Your job is to help users solve technical problems by analyzing past incident records (RCAs) and providing actionable guidance.

Be practical, specific, and helpful. Format your response as structured guidance that a user can follow step-by-step."""

GENERAL_TROUBLESHOOTING_SYSTEM = (
    "You are a helpful IT support assistant providing general troubleshooting guidance."
)

GUIDE_SYSTEM = (
    "You are a helpful IT support guide. Based on a past incident record, help the user solve "
    "their current problem with clear, step-by-step instructions."
)

STRUCTURE_SYSTEM = (
    "You are a technical writer creating structured incident reports. Return only valid JSON."
)

NO_MATCH_CHECKLIST = """No similar issues found in our knowledge base. This might be a new type of problem.

**Recommendations:**
1. Check system logs for error messages
2. Verify recent changes (deployments, configs, updates)
3. Check resource utilization (CPU, memory, disk, network)
4. Try restarting the affected service/component
5. Document your findings for future reference

Once you solve this issue, please create an RCA to help others who face similar problems!"""


def _problem_lines(problem: str, category: Optional[str], additional_details: Optional[str]) -> str:
    lines = [f'"{problem}"']
    if additional_details:
        lines.append(f"Additional details: {additional_details}")
    if category:
        lines.append(f"Category: {category}")
    return "\n".join(lines)


def solver_analysis_prompt(problem: str, category: Optional[str], additional_details: Optional[str],
                           records: List[Dict[str, Any]]) -> str:
    context = "\n---\n".join(
        f"RCA #{i}:\n"
        f"- Title: {r['title']}\n"
        f"- Category: {r['category']}\n"
        f"- Symptoms: {r['symptoms']}\n"
        f"- Root Cause: {r['rootCause']}\n"
        f"- Solution: {r['solution']}\n"
        f"- Prevention: {r.get('prevention') or 'Not specified'}"
        for i, r in enumerate(records, start=1)
    )
    return f"""A user is experiencing this problem:
{_problem_lines(problem, category, additional_details)}

Here are similar past incidents from our knowledge base:
{context}

Please analyze and provide:
1. MATCH ASSESSMENT: How closely do the past RCAs match this problem? (High/Medium/Low confidence)
2. LIKELY ROOT CAUSE: Based on patterns, what's the most likely cause?
3. RECOMMENDED SOLUTION: Step-by-step solution based on past fixes
4. TROUBLESHOOTING STEPS: If the main solution doesn't work, what else to try
5. QUESTIONS TO ASK: What additional info would help diagnose this better?

Format your response clearly with these sections."""


def general_troubleshooting_prompt(problem: str, category: Optional[str],
                                   additional_details: Optional[str]) -> str:
    return f"""A user is experiencing this technical problem: {_problem_lines(problem, category, additional_details)}

We don't have any similar past incidents in our database. Please provide:
1. General troubleshooting steps for this type of issue
2. Common causes for such problems
3. What information would help diagnose this
4. Recommendation to document this as a new RCA once solved

Keep it practical and actionable."""


def keyword_match_summary(best: Dict[str, Any], total: int) -> str:
    text = f"""Based on keyword matching, we found {total} potentially related issue(s).

**Most Similar Issue:** {best['title']}

**Symptoms from past incident:**
{best['symptoms']}

**Root Cause was:**
{best['rootCause']}

**Solution that worked:**
{best['solution']}
"""
    if best.get("prevention"):
        text += f"\n**Prevention tips:** {best['prevention']}\n"
    text += "\nPlease review if this matches your situation. If not, try providing more details about your problem."
    return text


def guide_prompt(record: Dict[str, Any], user_problem: Optional[str], user_context: Optional[str]) -> str:
    context_line = f"Additional context: {user_context}\n" if user_context else ""
    return f"""The user's current problem: "{user_problem or ''}"
{context_line}
This past incident seems relevant:
- Title: {record['title']}
- Category: {record['category']}
- Past Symptoms: {record['symptoms']}
- Root Cause: {record['rootCause']}
- Solution Applied: {record['solution']}
- Prevention: {record.get('prevention') or 'Not documented'}

Please provide:
1. How to verify if this is the same issue (diagnostic steps)
2. Step-by-step solution adapted to the user's context
3. How to verify the fix worked
4. What to do if this doesn't solve it
5. Preventive measures to avoid recurrence

Be specific and actionable."""


def templated_guide(record: Dict[str, Any]) -> str:
    return f"""**Guided Solution Based on Past Incident**

**Step 1: Verify the Problem**
Compare your symptoms with the past incident:
- Past symptoms: {record['symptoms']}

**Step 2: Apply the Solution**
{record['solution']}

**Step 3: Verify the Fix**
- Test the affected functionality
- Monitor for recurrence
- Check logs for any remaining errors

**Step 4: If Not Resolved**
- The root cause might be different
- Document what you tried
- Consider creating a new RCA

**Prevention:**
{record.get('prevention') or 'Document preventive measures once resolved'}"""


def structure_record_prompt(problem: str, solution: str) -> str:
    return f"""Based on this problem and solution, create a structured RCA:

Problem: {problem}
Solution: {solution}

Provide a JSON response with:
{{
  "title": "concise title",
  "category": "one of: Server, Database, Network, App, Security, Other",
  "symptoms": "observable symptoms",
  "rootCause": "underlying cause",
  "solution": "step-by-step solution",
  "prevention": "how to prevent recurrence",
  "severity": "Low, Medium, High, or Critical",
  "tags": ["relevant", "tags"]
}}"""


# Chat

CHAT_GREETING = """Hello! 👋 I'm your RCA Assistant. I'm here to help you troubleshoot technical issues.

Unfortunately, AI features are not configured yet. But you can still:
• Search for solutions using Quick Search mode
• Browse the Knowledge Base for past incidents
• Create new RCAs to document issues

How can I help you today?"""


def chat_default_reply(message: str) -> str:
    return f"""I understand you're saying: "{message}"

To help you better, I need the AI features to be enabled. Please configure the ANTHROPIC_API_KEY in the backend environment.

In the meantime, try using Quick Search mode to find solutions!"""


def chat_system_prompt(records: List[Dict[str, Any]]) -> str:
    context = ""
    if records:
        lines = "\n".join(
            f'{i}. "{r["title"]}" - Root cause: {r["rootCause"][:100]}...'
            for i, r in enumerate(records, start=1)
        )
        context = (
            "Knowledge Base Context: \n\nI found these relevant past incidents in our knowledge base "
            f"that might help:\n{lines}\n\n"
        )

    return f"""You are a friendly and helpful IT Support Assistant chatbot. Your name is "RCA Bot".

Your personality:
- Friendly and conversational (use casual language, emojis occasionally)
- Patient and understanding
- Knowledgeable about IT issues
- Helpful in diagnosing problems step by step

Your capabilities:
- Help users troubleshoot technical problems
- Guide them through diagnostic steps
- Suggest solutions based on past incidents
- Help document new issues as RCAs

How to behave:
- For greetings (hi, hello, etc.): Respond warmly and ask how you can help
- For technical problems: Ask clarifying questions, then provide step-by-step guidance
- For thanks/goodbye: Respond politely
- Always be encouraging and supportive

{context}Remember: You're having a natural conversation. Don't be robotic. Be helpful like a friendly colleague who knows about IT issues."""


CHAT_CONNECTION_APOLOGY = "Oops! My AI brain is not connected properly. Please check the API key configuration."
CHAT_BUSY_APOLOGY = "I'm a bit overwhelmed right now. Please wait a moment and try again."
CHAT_INVALID_KEY_APOLOGY = "My API key seems to be invalid. Please check the configuration."
CHAT_GENERIC_APOLOGY = "Sorry, I encountered an error. Please try again!"
