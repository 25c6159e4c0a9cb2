"""GraphQL documents for the ValueFlows operations the bridge uses."""

from __future__ import annotations

CREATE_PERSON = """
mutation CreatePerson($person: AgentCreateParams!) {
  createPerson(person: $person) {
    agent { id name note }
  }
}
"""

CREATE_ORGANIZATION = """
mutation CreateOrganization($organization: OrganizationCreateParams!) {
  createOrganization(organization: $organization) {
    agent { id name note }
  }
}
"""

CREATE_RESOURCE_SPECIFICATION = """
mutation CreateResourceSpecification(
  $resourceSpecification: ResourceSpecificationCreateParams!
) {
  createResourceSpecification(resourceSpecification: $resourceSpecification) {
    resourceSpecification { id name note }
  }
}
"""

CREATE_PROPOSAL = """
mutation CreateProposal($proposal: ProposalCreateParams!) {
  createProposal(proposal: $proposal) {
    proposal { id name note }
  }
}
"""

CREATE_INTENT = """
mutation CreateIntent($intent: IntentCreateParams!) {
  createIntent(intent: $intent) {
    intent {
      id
      action { id }
      provider { id }
      receiver { id }
      resourceConformsTo { id }
      note
    }
  }
}
"""

PROPOSE_INTENT = """
mutation ProposeIntent($publishedIn: ID!, $publishes: ID!, $reciprocal: Boolean) {
  proposeIntent(publishedIn: $publishedIn, publishes: $publishes, reciprocal: $reciprocal) {
    proposedIntent { id reciprocal }
  }
}
"""

LIST_AGENTS = """
query ListAgents {
  agents { edges { node { id name note } } }
}
"""

LIST_RESOURCE_SPECIFICATIONS = """
query ListResourceSpecifications {
  resourceSpecifications { edges { node { id name note } } }
}
"""

LIST_PROPOSALS = """
query ListProposals {
  proposals {
    edges {
      node {
        id
        name
        note
        publishes { id reciprocal }
      }
    }
  }
}
"""

LIST_INTENTS = """
query ListIntents {
  intents {
    edges {
      node {
        id
        action { id }
        provider { id }
        receiver { id }
        resourceConformsTo { id }
        note
      }
    }
  }
}
"""
