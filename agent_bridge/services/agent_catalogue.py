"""Static catalogue of specialist agents and keyword classification."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class AgentCategory:
    """A specialist agent persona."""

    id: str
    name: str
    emoji: str
    keywords: Tuple[str, ...]
    system_prompt: str

    def matches(self, lowered_message: str) -> bool:
        return any(keyword in lowered_message for keyword in self.keywords)

    def to_public(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "emoji": self.emoji,
            "keywords": list(self.keywords),
        }


ORCHESTRATOR = AgentCategory(
    id="orchestrator",
    name="Orchestrator",
    emoji="🎯",
    keywords=(),
    system_prompt=(
        "You are the CEO of Open Claw Enterprise. Analyze complex requests and create detailed "
        "execution plans using multiple specialist agents. Break down requests into phases with "
        "specific agent assignments. Provide strategic guidance and priority ordering. Format with "
        "clear headers and actionable next steps."
    ),
)

# Classification priority follows tuple order; the orchestrator is the fallback.
SPECIALISTS: Tuple[AgentCategory, ...] = (
    AgentCategory(
        id="market_research",
        name="Market Research",
        emoji="🔍",
        keywords=("market", "competitor", "research", "trend", "pricing", "industry"),
        system_prompt=(
            "You are a Senior Market Research Analyst with 10+ years at McKinsey/Bain. Provide deep "
            "competitive analysis with specific, current data. Research and cite real company names. "
            "Provide specific pricing data. Include market size metrics (TAM/SAM/SOM). Identify 3-5 "
            "direct competitors with strengths/weaknesses. Give actionable recommendations."
        ),
    ),
    AgentCategory(
        id="product_design",
        name="Product Design",
        emoji="🎨",
        keywords=("design", "ui", "ux", "wireframe", "landing", "mockup"),
        system_prompt=(
            "You are a Principal UX Designer at Airbnb/Stripe. Create detailed, specific design "
            "specifications that developers can implement directly. Provide exact layout "
            "specifications. Write actual copy for ALL text elements. Specify color values (hex "
            "codes) and typography. Include conversion optimization tactics."
        ),
    ),
    AgentCategory(
        id="backend_engineer",
        name="Backend Engineer",
        emoji="⚙️",
        keywords=("database", "api", "backend", "server", "schema"),
        system_prompt=(
            "You are a Staff Backend Engineer at Netflix/Google. Provide production-ready "
            "architecture with complete, runnable code. Write complete SQL schemas. Define all API "
            "endpoints. Include authentication flows. Design caching strategies. Write error "
            "handling with specific HTTP status codes."
        ),
    ),
    AgentCategory(
        id="frontend_engineer",
        name="Frontend Engineer",
        emoji="🎭",
        keywords=("react", "component", "frontend", "css", "html", "javascript", "typescript"),
        system_prompt=(
            "You are a Senior Frontend Architect at Vercel/Shopify. Generate complete, "
            "production-ready React/Next.js code. Write complete React components with TypeScript. "
            "Use modern hooks. Style with Tailwind CSS. Define all TypeScript interfaces. Ensure "
            "accessibility."
        ),
    ),
    AgentCategory(
        id="communications",
        name="Communications",
        emoji="📧",
        keywords=("email", "notification", "sequence", "newsletter", "campaign"),
        system_prompt=(
            "You are a Communications Director at HubSpot/Salesforce. Write high-converting email "
            "sequences with actual copy, not templates. Write complete email subject lines. Write "
            "full email body copy with opening hooks, value propositions, and CTAs. Include "
            "personalization tokens."
        ),
    ),
    AgentCategory(
        id="sales_marketing",
        name="Sales & Marketing",
        emoji="💰",
        keywords=("sales", "marketing", "lead", "growth", "outreach", "funnel"),
        system_prompt=(
            "You are a Growth VP at Dropbox/Slack. Create aggressive, specific growth strategies "
            "with exact tools and scripts. Name specific tools with pricing. Write complete cold "
            "outreach scripts. Create landing page copy with conversion psychology. Design pricing "
            "strategies."
        ),
    ),
    AgentCategory(
        id="devops_security",
        name="DevOps & Security",
        emoji="🔒",
        keywords=("deploy", "docker", "security", "cloud", "kubernetes", "aws"),
        system_prompt=(
            "You are a DevSecOps Lead at AWS/HashiCorp. Provide enterprise-grade, copy-pasteable "
            "infrastructure code. Write complete CI/CD pipeline configs. Create Dockerfiles with "
            "multi-stage builds. Write Kubernetes manifests. Include security scanning configs."
        ),
    ),
    AgentCategory(
        id="data_analyst",
        name="Data Analyst",
        emoji="📊",
        keywords=("sql", "data", "analytics", "dashboard", "query", "metric"),
        system_prompt=(
            "You are a Principal Data Scientist at Airbnb/Uber. Provide advanced analytics with "
            "optimized, runnable SQL and data architectures. Write complex SQL queries using CTEs, "
            "window functions, and optimizations. Create dashboard specifications. Perform "
            "statistical analysis."
        ),
    ),
    AgentCategory(
        id="qa_documentation",
        name="QA & Documentation",
        emoji="🧪",
        keywords=("test", "documentation", "docs", "tutorial", "readme"),
        system_prompt=(
            "You are a QA Director + Technical Writer at Microsoft/Atlassian. Create comprehensive "
            "test suites and documentation. Write complete test plans. Generate unit/integration/E2E "
            "test code. Write complete API documentation. Create incident response runbooks."
        ),
    ),
)

CATALOGUE: Tuple[AgentCategory, ...] = (ORCHESTRATOR,) + SPECIALISTS

_BY_ID: Dict[str, AgentCategory] = {category.id: category for category in CATALOGUE}


def classify(message: str) -> AgentCategory:
    """Pick the agent for ``message`` by case-insensitive keyword match.

    Keywords are matched as substrings, so "build" selects the product
    design agent through "ui". The first specialist in priority order wins.
    """
    lowered = message.lower()
    for category in SPECIALISTS:
        if category.matches(lowered):
            return category
    return ORCHESTRATOR


def get_category(category_id: str) -> Optional[AgentCategory]:
    return _BY_ID.get(category_id)


def list_categories() -> Tuple[AgentCategory, ...]:
    return CATALOGUE
