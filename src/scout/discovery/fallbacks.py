"""Static jobs and questions used when dynamic output is missing or short."""

from scout.discovery.models import Question, SelectionMode, SpecialistJob

PROFILE_JOB_ID = "stack-analyst"

STACK_ANALYSIS_JOB = SpecialistJob(
    id=PROFILE_JOB_ID,
    title="Stack analysis",
    objective=(
        "Infer the real technology stack, core architecture style, and likely "
        "integration points from repository and context."
    ),
    produces_profile_artifact=True,
)

FALLBACK_JOBS: tuple[SpecialistJob, ...] = (
    SpecialistJob(
        id="goal-analyst",
        title="Goal analysis",
        objective=(
            "Clarify product objective, success criteria, and ambiguous scope decisions "
            "required for a complete draft specification."
        ),
    ),
    SpecialistJob(
        id="delivery-risk-analyst",
        title="Delivery risk analysis",
        objective=(
            "Identify implementation blockers, operational constraints, and unresolved "
            "decisions that can change technical execution."
        ),
    ),
    SpecialistJob(
        id="general-analyst",
        title="General discovery analysis",
        objective=(
            "Identify unresolved product, scope, and delivery decisions needed to produce "
            "a complete draft specification."
        ),
    ),
)

# Appended in this order when the merge call returns fewer than three questions.
FALLBACK_QUESTIONS: tuple[Question, ...] = (
    Question(
        id="fallback-scope",
        prompt="How would you describe the overall scope of this project?",
        rationale="Scope clarity helps narrow implementation decisions.",
        selection_mode=SelectionMode.SINGLE,
        options=[
            "Small feature addition",
            "Medium feature set",
            "Large system overhaul",
            "Greenfield application",
        ],
        recommended_option="Medium feature set",
    ),
    Question(
        id="fallback-priority",
        prompt="What is most important for the first deliverable?",
        rationale="Prioritization drives task ordering in the plan.",
        selection_mode=SelectionMode.SINGLE,
        options=[
            "Speed of delivery",
            "Code quality and maintainability",
            "Feature completeness",
            "User experience polish",
        ],
        recommended_option="Feature completeness",
    ),
    Question(
        id="fallback-constraints",
        prompt="Are there any hard constraints on this project?",
        rationale="Constraints materially affect architecture and implementation choices.",
        selection_mode=SelectionMode.MULTI,
        options=[
            "Must use existing tech stack only",
            "Strict deadline within 1-2 weeks",
            "Must maintain backward compatibility",
            "No significant constraints",
        ],
        recommended_option="No significant constraints",
    ),
)
