"""
Prompt templates sent to the Gemini API.

Every template is written in French since the generated content is shown as-is
to French VSE/PME users. Templates use str.format placeholders; literal braces
in JSON examples are doubled.
"""

# System instruction shared by every free-text generation.
SYSTEM_INSTRUCTION = (
    "Vous êtes un expert en conformité RGPD qui aide les entreprises françaises VSE/PME. "
    "Répondez en français de manière claire et professionnelle."
)

# System instruction for structured (JSON) generations.
STRUCTURED_SYSTEM_INSTRUCTION = (
    "Vous êtes un expert en conformité RGPD. "
    "Répondez uniquement avec un JSON valide selon le schéma demandé."
)

# Wrapper for structured requests: the schema and the context are JSON-dumped.
STRUCTURED_PROMPT_TEMPLATE = """{prompt}

Schéma de réponse attendu: {schema}

Contexte: {context}

Répondez UNIQUEMENT avec un JSON valide, sans texte supplémentaire."""

ACTION_PLAN_PROMPT = """Analysez les réponses du diagnostic RGPD et générez un plan d'action personnalisé pour cette entreprise VSE/PME française.

Réponses du diagnostic: {diagnostic_data}
Informations de l'entreprise: {company_info}

Générez un plan d'action avec des actions concrètes et réalisables adaptées aux ressources limitées d'une VSE/PME.
Priorisez les actions selon leur urgence légale et leur impact sur la conformité."""

ACTION_PLAN_SCHEMA = {
    "actions": [
        {
            "title": "string",
            "description": "string",
            "category": "string",
            "priority": "string (urgent|important|normal)",
            "due_date": "string (optionnel, date ISO)",
        }
    ],
    "overall_risk_score": "number (0-100)",
    "summary": "string",
}

PROCESSING_RECORD_PROMPT = """Générez un registre de traitement RGPD pour cette entreprise française.

Entreprise: {company}
Type de traitement: {processing_type}
Description: {description}

Le registre doit inclure tous les éléments obligatoires selon l'article 30 du RGPD."""

PROCESSING_RECORD_SCHEMA = {
    "name": "string",
    "purpose": "string",
    "legal_basis": "string (consent|contract|legal_obligation|vital_interests|public_task|legitimate_interests)",
    "data_categories": ["string"],
    "recipients": ["string"],
    "retention": "string",
    "security_measures": ["string"],
    "transfers_outside_eu": "boolean",
}

PRIVACY_POLICY_PROMPT = """En tant qu'expert juridique en protection des données, rédigez une politique de confidentialité complète et conforme au RGPD pour cette entreprise.

Informations de l'entreprise:
- Nom: {name}
- Secteur: {sector}

Traitements de données identifiés:
{records}

La politique doit être:
- Rédigée en français clair et accessible
- Conforme aux exigences RGPD (articles 13 et 14)
- Adaptée à une VSE/PME et au secteur d'activité de l'entreprise
- Incluant tous les droits des personnes concernées

Répondez en Markdown, sans texte d'introduction."""

BREACH_ANALYSIS_PROMPT = """En tant qu'expert DPO, analysez cette violation de données selon les Lignes directrices 9/2022 de l'EDPB sur la notification des violations de données personnelles.

Données de l'incident:
{breach}

Analysez selon les critères EDPB 9/2022:
1. Nature de la violation
2. Catégories de données concernées
3. Nombre de personnes affectées
4. Conséquences probables
5. Mesures prises

Déterminez:
- Si une notification à la CNIL est obligatoire (72h)
- Si une information aux personnes concernées est nécessaire
- Le niveau de risque
- Les actions recommandées"""

BREACH_ANALYSIS_SCHEMA = {
    "notification_required": "boolean",
    "data_subject_notification_required": "boolean",
    "justification": "string (justification détaillée avec références EDPB)",
    "risk_level": "string (faible|moyen|elevé|critique)",
    "recommendations": ["string"],
}

DPIA_REQUIRED_PROMPT = """Déterminez si une analyse d'impact relative à la protection des données (AIPD) est obligatoire pour ce traitement.

Traitement: {record}

Appuyez-vous sur les 9 critères du CEPD (G29) et sur la liste CNIL des traitements soumis à AIPD.
Une AIPD est en principe requise dès que deux critères sont remplis."""

DPIA_REQUIRED_SCHEMA = {
    "dpia_required": "boolean",
    "justification": "string",
    "risk_level": "string (faible|moyen|elevé|critique)",
}

DPIA_ASSESSMENT_PROMPT = """Réalisez une analyse d'impact relative à la protection des données (AIPD/DPIA) pour ce traitement.

Nom du traitement: {name}
Description: {description}
Entreprise: {company}

Analysez les risques et proposez des mesures de protection adaptées à une VSE/PME."""

DPIA_ASSESSMENT_SCHEMA = {
    "risk_assessment": {
        "likelihood": "string (faible|moyen|elevé)",
        "severity": "string (faible|moyen|elevé)",
        "overall_risk": "string (faible|moyen|elevé|critique)",
    },
    "measures": {
        "technical": ["string"],
        "organizational": ["string"],
        "legal": ["string"],
    },
    "conclusion": "string",
    "dpia_required": "boolean",
}

# Field-specific instructions for the DPIA questionnaire assistant.
DPIA_FIELD_PROMPTS = {
    "generalDescription": """En tant qu'expert AIPD, rédigez une description générale pour le traitement en cours d'analyse.

Basez-vous sur le profil de l'entreprise et les traitements existants pour proposer une description cohérente.
Incluez: nature du projet, portée (qui est concerné, à quelle échelle), contexte général.""",
    "processingPurposes": """Définissez les finalités précises de ce traitement selon les exigences RGPD.

Les finalités doivent être déterminées, explicites et légitimes. Distinguez:
- Finalité principale (objectif principal du traitement)
- Finalités secondaires éventuelles (statistiques, amélioration du service)

Basez-vous sur le secteur d'activité "{sector}" pour proposer des finalités cohérentes.""",
    "dataProcessors": """Identifiez les sous-traitants potentiels pour ce type de traitement.

Pour chaque sous-traitant, précisez son rôle et rappelez la nécessité d'un contrat de sous-traitance conforme à l'article 28 du RGPD.""",
    "dataMinimization": """Analysez la minimisation des données pour ce traitement selon l'article 5.1.c du RGPD.

Pour chaque catégorie de données collectées, justifiez en quoi elle est "adéquate, pertinente et limitée à ce qui est nécessaire".
Proposez des alternatives si certaines données semblent excessives.""",
    "retentionJustification": """Justifiez les durées de conservation selon les obligations légales du secteur "{sector}".

Proposez des durées différenciées selon:
- La phase active du traitement
- L'archivage intermédiaire (si applicable)
- Les obligations légales de conservation

Mentionnez les processus de suppression/archivage à mettre en place.""",
    "rightsInformation": """Décrivez les modalités d'information des personnes concernées selon les articles 13-14 du RGPD.

Précisez:
- Les supports d'information (formulaires, site web, affichage)
- Le moment de l'information (collecte directe/indirecte)
- Le contenu obligatoire (responsable, finalités, droits, etc.)
- L'adaptation au public cible""",
    "securityMeasures": """Listez les mesures de sécurité techniques et organisationnelles selon l'article 32 du RGPD.

Structurez par catégories:
- Contrôle d'accès (authentification, habilitations)
- Chiffrement (stockage, transit)
- Traçabilité et journalisation
- Sauvegardes et continuité
- Sécurité physique
- Formation du personnel
- Gestion des incidents

Adaptez au niveau de risque et aux moyens d'une {size}.""",
    "dpoAdvice": """Rédigez l'avis du Délégué à la Protection des Données sur cette AIPD.

L'avis doit porter sur:
- La méthodologie utilisée
- La complétude de l'analyse
- La pertinence des mesures proposées
- Les points d'attention particuliers
- Les recommandations d'amélioration

Adoptez un ton professionnel de DPO expérimenté.""",
}

DPIA_DEFAULT_FIELD_PROMPT = 'Fournissez une réponse adaptée au champ "{field}" dans le contexte d\'une AIPD RGPD.'

DPIA_RESPONSE_FOOTER = (
    "Répondez de manière professionnelle, précise et directement applicable. "
    "Citez les articles RGPD pertinents quand approprié."
)

RISK_ASSESSMENT_PROMPT = """En tant qu'expert en analyse de risques AIPD selon la méthodologie CNIL, évaluez les trois types de risques fondamentaux.

Description du traitement: {description}

Catégories de données: {data_categories}

Entreprise: {sector} - {size}

Analysez selon la méthodologie CNIL les 3 risques:
1. ACCÈS ILLÉGITIME (atteinte à la confidentialité)
2. MODIFICATION NON DÉSIRÉE (atteinte à l'intégrité)
3. DISPARITION DE DONNÉES (atteinte à la disponibilité)

Pour chacun: sources de risques, menaces concrètes, impacts potentiels sur les personnes,
gravité et vraisemblance (negligible|limited|significant|maximum)."""

RISK_ASSESSMENT_SCHEMA = {
    "risks": [
        {
            "risk_type": "illegitimate_access|unwanted_modification|data_disappearance",
            "risk_sources": "string",
            "threats": "string",
            "potential_impacts": "string",
            "severity": "negligible|limited|significant|maximum",
            "likelihood": "negligible|limited|significant|maximum",
        }
    ]
}

CHATBOT_SYSTEM_INSTRUCTION = """Vous êtes un Délégué à la Protection des Données (DPO) expert en RGPD.

Votre rôle:
- Fournir des conseils précis sur la protection des données
- Citer les sources juridiques pertinentes (RGPD, CNIL, EDPB)
- Adapter votre langage au niveau de l'utilisateur
- Recommander de consulter un juriste pour des questions complexes

Répondez en français en tant que DPO expérimenté."""

CHATBOT_PROMPT = """L'utilisateur demande: {message}

Répondez de manière claire et pratique, en donnant des conseils concrets et adaptés au contexte français.
Utilisez un langage accessible et évitez le jargon juridique complexe."""

# Header placed before the reference documents selected for a prompt category.
RAG_DOCUMENTS_HEADER = "Documents de référence CNIL à prioriser:"
RAG_DOCUMENTS_SEPARATOR = "\n\n---\n\n"
