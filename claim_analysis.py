"""Concurrent insurance claim analysis

The same claim text is sent to four specialist agents in parallel (fan-out)
and their answers are collected in specialist order (fan-in):

    claim ──▶ policy-expert      ──┐
          ├─▶ fraud-detector     ──┤
          ├─▶ damage-assessor    ──┼──▶ ClaimAnalysis
          └─▶ compliance-officer ──┘
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from anthropic import APIError

from llm import MAX_TOKENS, MODEL, get_async_client, response_text
from telemetry import STATUS_ERROR, STATUS_OK, TelemetryRecorder, agent_span

logger = logging.getLogger(__name__)

WORKFLOW_NAME = "claim-analysis"


@dataclass(frozen=True)
class Specialist:
    """A named agent with its own instructions"""

    name: str
    title: str
    instructions: str


POLICY_EXPERT = Specialist(
    name="policy-expert",
    title="Policy Expert",
    instructions="""You are a Policy Coverage Expert for an insurance company.
Your role is to analyze insurance claims and determine:
1. Whether the claim is covered under the policy
2. What coverage limits apply
3. Any exclusions that might affect the claim
4. The deductible amount applicable

Format your response as:
**POLICY ANALYSIS**
- Coverage Status: [Covered/Partially Covered/Not Covered]
- Applicable Coverage: [type of coverage]
- Coverage Limit: [amount if determinable]
- Deductible: [amount if known]
- Exclusions: [any applicable exclusions]
- Notes: [additional observations]""",
)

FRAUD_DETECTOR = Specialist(
    name="fraud-detector",
    title="Fraud Detector",
    instructions="""You are a Fraud Detection Specialist for an insurance company.
Your role is to analyze claims for potential fraud indicators:
1. Look for inconsistencies in the claim details
2. Identify red flags or suspicious patterns
3. Assess the likelihood of fraudulent activity
4. Recommend whether further investigation is needed

Format your response as:
**FRAUD ANALYSIS**
- Risk Level: [Low/Medium/High]
- Red Flags Identified: [list or "None"]
- Inconsistencies: [list or "None found"]
- Investigation Needed: [Yes/No]
- Recommendation: [proceed/hold for review/investigate]""",
)

DAMAGE_ASSESSOR = Specialist(
    name="damage-assessor",
    title="Damage Assessor",
    instructions="""You are a Damage Assessment Specialist for an insurance company.
Your role is to evaluate the claimed damages:
1. Assess the reported damage or loss
2. Estimate repair or replacement costs
3. Determine if the claim amount is reasonable
4. Identify any salvage value

Format your response as:
**DAMAGE ASSESSMENT**
- Damage Type: [description]
- Severity: [Minor/Moderate/Severe/Total Loss]
- Estimated Value: [amount or range]
- Claim Amount Reasonable: [Yes/High/Low/Needs Verification]
- Salvage Value: [if applicable]
- Notes: [additional observations]""",
)

COMPLIANCE_OFFICER = Specialist(
    name="compliance-officer",
    title="Compliance Officer",
    instructions="""You are a Compliance Officer for an insurance company.
Your role is to ensure claim handling meets regulatory requirements:
1. Verify the claim follows proper procedures
2. Check for any regulatory concerns
3. Ensure documentation requirements are met
4. Identify any compliance risks

Format your response as:
**COMPLIANCE REVIEW**
- Procedural Status: [Compliant/Needs Attention]
- Documentation: [Complete/Incomplete]
- Regulatory Concerns: [list or "None"]
- Timeline Compliance: [Within limits/At risk/Overdue]
- Recommended Actions: [any required actions]""",
)

SPECIALISTS = (POLICY_EXPERT, FRAUD_DETECTOR, DAMAGE_ASSESSOR, COMPLIANCE_OFFICER)

EXAMPLE_CLAIMS = (
    "I need to file a claim for water damage. A pipe burst causing $15,000 "
    "damage to floors and walls. Policy HO-12345.",
    "Filing auto insurance claim for a rear-end collision. Other driver was "
    "at fault. Damage estimate $8,500.",
)


@dataclass
class SpecialistResult:
    agent: str
    title: str
    text: str = ""
    status: str = STATUS_OK
    error: str | None = None
    duration_ms: int = 0
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


@dataclass
class ClaimAnalysis:
    """Fan-in of all specialist results, in specialist order"""

    claim: str
    results: list[SpecialistResult] = field(default_factory=list)
    workflow: str = WORKFLOW_NAME

    @property
    def succeeded(self) -> list[SpecialistResult]:
        return [result for result in self.results if result.ok]

    @property
    def failed(self) -> list[SpecialistResult]:
        return [result for result in self.results if not result.ok]

    def report(self) -> str:
        """Render the combined output as one text document"""
        sections = []
        for result in self.results:
            if result.ok:
                body = result.text.strip()
            else:
                body = f"[{result.title} unavailable: {result.error}]"
            sections.append(f"### {result.title}\n{body}")
        return "\n\n".join(sections)


async def run_specialist(
    client,
    specialist: Specialist,
    claim: str,
    recorder: TelemetryRecorder | None = None,
    workflow: str = WORKFLOW_NAME,
) -> SpecialistResult:
    """Ask one specialist about the claim; API errors become an error result"""
    result = SpecialistResult(agent=specialist.name, title=specialist.title)
    start_time = time.monotonic()

    with agent_span(recorder, workflow, specialist.name, MODEL, claim) as span:
        try:
            response = await client.messages.create(
                model=MODEL,
                max_tokens=MAX_TOKENS,
                system=specialist.instructions,
                messages=[{"role": "user", "content": claim}],
            )
        except APIError as e:
            logger.error("Specialist %s failed: %s", specialist.name, e)
            span.record_error(e)
            result.status = STATUS_ERROR
            result.error = str(e)
        else:
            result.text = response_text(response)
            span.record_output(result.text)
            usage = getattr(response, "usage", None)
            if usage is not None:
                result.input_tokens = usage.input_tokens
                result.output_tokens = usage.output_tokens
                span.record_usage(usage.input_tokens, usage.output_tokens)

    result.duration_ms = int((time.monotonic() - start_time) * 1000)
    return result


async def analyze_claim(
    claim: str,
    client=None,
    recorder: TelemetryRecorder | None = None,
    specialists: tuple[Specialist, ...] = SPECIALISTS,
) -> ClaimAnalysis:
    """Fan the claim out to every specialist and gather the results"""
    if not claim or not claim.strip():
        raise ValueError("Claim text cannot be empty")

    client = client or get_async_client()

    logger.info(
        "Claim analysis started: %d specialists, claim='%s'",
        len(specialists),
        claim[:80],
    )

    results = await asyncio.gather(*(
        run_specialist(client, specialist, claim, recorder)
        for specialist in specialists
    ))

    analysis = ClaimAnalysis(claim=claim, results=list(results))
    logger.info(
        "Claim analysis finished: %d ok, %d failed",
        len(analysis.succeeded),
        len(analysis.failed),
    )
    return analysis


if __name__ == "__main__":
    import sys

    logging.basicConfig(level=logging.INFO)
    claim_text = " ".join(sys.argv[1:]) or EXAMPLE_CLAIMS[0]
    print(asyncio.run(analyze_claim(claim_text)).report())
