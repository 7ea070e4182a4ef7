"""Prompt templates for chunk reviews, overviews and KT documentation."""

from __future__ import annotations

STANDARD_CHUNK_TEMPLATE = """Analyze this Salesforce {file_type} code from {file_name} with technical precision:

Technical Analysis Requirements:
1. Code Structure & Quality
   - Identify design patterns
   - Code complexity assessment
   - SOLID principles adherence

2. Performance Optimization
   - Query optimization
   - Bulkification issues
   - CPU/Memory considerations
   - Governor limits impact

3. Security Analysis
   - CRUD/FLS compliance
   - Injection vulnerabilities
   - Sharing model issues

4. Best Practices
   - Salesforce recommended patterns
   - Error handling improvements
   - Test coverage recommendations

5. Provide Optimized Code
   - Include fixed/optimized version
   - Comments explaining changes
   - Performance impact estimates

Code to analyze:
{chunk}

Response Format:
- Keep analysis concise and technical
- Prioritize critical issues
- Include specific code fixes
- Provide measurable improvements"""

KT_CHUNK_TEMPLATE = """Analyze this Salesforce {file_type} code from {file_name} for new developer onboarding.
Provide detailed analysis focusing on:
1. File Purpose & Responsibility
- Main functionality
- Business context
- Key components/classes

2. Technical Implementation
- Important methods and their purposes
- Data structures used
- Integration points

3. Development Guide
- Common modifications
- Testing requirements
- Debug points
- Setup prerequisites

4. Best Practices & Conventions
- Code patterns used
- Naming conventions
- Error handling approach

5. Dependencies & Relationships
- Related files/components
- External dependencies
- Data flow

Code to analyze:
{chunk}"""

OVERVIEW_TEMPLATE = """As a development expert, analyze this codebase for a new developer onboarding:

Files to analyze:
{files}

Please provide a comprehensive overview covering:
1. Overall Architecture
2. Code Quality
3. Performance Considerations
4. Security Analysis
5. Best Practices
6. Recommendations for Improvement"""

OVERVIEW_FILE_TEMPLATE = """File: {file_name}
Type: {file_type}
Analysis: {analysis}
"""

DOCUMENTATION_TEMPLATE = """Based on the following codebase analysis, generate developer onboarding documentation:
{categories}

Focus on:
1. Setup instructions
2. Development workflows
3. Architecture overview
4. Business logic documentation"""

CUSTOM_TEMPLATE = """Analyze this Salesforce code from {file_name} based on the following prompt:
{prompt}

Code to analyze:
{content}

Provide technical and precise response focusing on:
- Specific code improvements
- Performance impact
- Implementation details"""


__all__ = [
    "CUSTOM_TEMPLATE",
    "DOCUMENTATION_TEMPLATE",
    "KT_CHUNK_TEMPLATE",
    "OVERVIEW_FILE_TEMPLATE",
    "OVERVIEW_TEMPLATE",
    "STANDARD_CHUNK_TEMPLATE",
]
