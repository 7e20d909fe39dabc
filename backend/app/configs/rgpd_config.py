"""
Domain constants for the RGPD compliance engine.

This module groups the business rules that are shared between services:
risk scoring of diagnostic answers, priority mapping, permission identifiers,
CNIL DPIA criteria, sector contexts and the default content seeded into an
empty database.
"""

# Risk levels attached to diagnostic answers, ordered from lowest to highest.
RISK_LEVELS = ["faible", "moyen", "elevé", "critique"]

# Points added to the overall risk score for each generated action.
RISK_POINTS = {
    "critique": 25,
    "elevé": 15,
    "moyen": 10,
}
DEFAULT_RISK_POINTS = 5
MAX_RISK_SCORE = 100

# Severity rank used to pick the worst risk of a category.
RISK_SEVERITY = {
    "critique": 4,
    "elevé": 3,
    "moyen": 2,
    "faible": 1,
}

# Priority of compliance actions derived from the risk level.
RISK_TO_PRIORITY = {
    "critique": "urgent",
    "elevé": "important",
    "moyen": "normal",
    "faible": "normal",
}
PRIORITY_RANK = {"urgent": 3, "important": 2, "normal": 1}

ACTION_PRIORITIES = ["urgent", "important", "normal"]
ACTION_STATUSES = ["todo", "inprogress", "completed"]
ACTION_TITLE_PREFIX = "Action pour: "

YES_ANSWER = "oui"
NO_ANSWER = "non"

# Company modules that can be delegated to collaborators.
PERMISSION_MODULES = [
    "diagnostic",
    "actions",
    "records",
    "breaches",
    "dpia",
    "requests",
    "policies",
    "subprocessors",
    "learning",
    "admin",
]
PERMISSION_ACTIONS = ["read", "write"]
PERMISSION_ALL = "all"
PERMISSION_INVITE = "invite"

COMPANY_ROLES = ["owner", "admin", "collaborator"]
MANAGER_ROLES = ("owner", "admin")

# Platform permissions per user role, each role inherits the previous one.
_USER_PERMISSIONS = [
    "view:dashboard",
    "view:diagnostic",
    "manage:actions",
    "manage:records",
    "manage:privacy-policy",
    "manage:breach-analysis",
    "manage:rights",
    "manage:dpia",
    "view:learning",
    "view:profile",
    "edit:profile",
]
_ADMIN_PERMISSIONS = _USER_PERMISSIONS + [
    "view:admin",
    "manage:company",
    "manage:users",
    "view:analytics",
    "manage:settings",
    "manage:prompts",
    "manage:documents",
]
ROLE_PERMISSIONS = {
    "user": _USER_PERMISSIONS,
    "admin": _ADMIN_PERMISSIONS,
    "super_admin": _ADMIN_PERMISSIONS + [
        "manage:system",
        "manage:roles",
        "view:logs",
        "manage:security",
        "delete:any",
        "manage:permissions",
    ],
}
PLATFORM_ROLES = list(ROLE_PERMISSIONS)

DEFAULT_PLAN_NAME = "Standard"
DEFAULT_MAX_COMPANIES = 1

# Data subject requests (Art. 12(3): one month, extendable by two more).
REQUEST_TYPES = ["access", "rectification", "erasure", "portability", "objection", "limitation"]
REQUEST_STATUSES = ["new", "inprogress", "verification", "closed"]
REQUEST_EXTENSION_MONTHS = 2
# Request types that disclose or destroy data and need a verified identity.
IDENTITY_SENSITIVE_REQUESTS = ("access", "erasure", "portability")

LEGAL_BASES = [
    "consent",
    "contract",
    "legal_obligation",
    "vital_interests",
    "public_task",
    "legitimate_interests",
]
RECORD_TYPES = ["controller", "joint-controller", "processor"]

BREACH_STATUSES = ["draft", "analyzed", "reported"]
BREACH_NOTIFICATION_HOURS = 72

DPIA_STATUSES = ["draft", "inprogress", "completed", "validated"]

# The nine criteria of the EDPB (WP248) guidelines, as stored on a processing record.
DPIA_CRITERIA = {
    "has_scoring": "Évaluation ou notation (scoring, profilage)",
    "has_automated_decision": "Décision automatisée avec effet juridique",
    "has_systematic_monitoring": "Surveillance systématique",
    "has_sensitive_data": "Données sensibles ou hautement personnelles",
    "has_large_scale": "Traitement à grande échelle",
    "has_data_combination": "Croisement ou combinaison d'ensembles de données",
    "has_vulnerable_persons": "Personnes vulnérables",
    "has_innovative_technology": "Usage innovant ou nouvelle technologie",
    "prevents_rights_exercise": "Exclusion du bénéfice d'un droit ou d'un contrat",
}
DPIA_REQUIRED_THRESHOLD = 2

# CNIL risk scenarios of a DPIA and their rating scale.
DPIA_RISK_TYPES = ["illegitimate_access", "unwanted_modification", "data_disappearance"]
DPIA_RISK_LEVELS = ["negligible", "limited", "significant", "maximum"]
DEFAULT_DPIA_RISK_LEVEL = "limited"

PROMPT_CATEGORIES = ["diagnostic", "records", "policy", "breach", "dpia", "chatbot", "dpia_generation"]

# Context extraction heuristics.
HIGH_RISK_DATA_KEYWORDS = ["santé", "biométrie", "judiciaire", "sensible", "mineur"]
SIMILARITY_THRESHOLD = 0.3
MAX_RELATED_RECORDS = 3
MIN_WORD_LENGTH = 3
EXISTING_FIELD_PREVIEW = 100

SECTOR_CONTEXTS = [
    (
        ("commerce", "marketing", "vente"),
        {
            "common_risks": [
                "Profilage marketing automatisé",
                "Cookies et traceurs publicitaires",
                "Transferts vers partenaires commerciaux",
                "Conservation excessive des données clients",
            ],
            "recommended_measures": [
                "Consentement explicite pour le profilage",
                "Gestion transparente des cookies",
                "Limitation des transferts de données",
                "Politique de conservation claire",
            ],
            "specific_requirements": [
                "Droit à la portabilité des données",
                "Information sur le profilage",
                "Opt-out facile du marketing direct",
            ],
        },
    ),
    (
        ("santé", "médical", "hôpital"),
        {
            "common_risks": [
                "Données de santé sensibles",
                "Accès non autorisé aux dossiers médicaux",
                "Partage avec professionnels de santé",
                "Conservation longue durée",
            ],
            "recommended_measures": [
                "Chiffrement renforcé",
                "Contrôle d'accès strict",
                "Journalisation des accès",
                "Formation du personnel médical",
            ],
            "specific_requirements": [
                "Base légale adaptée (soins, recherche)",
                "Consentement explicite si requis",
                "Droits spécifiques des patients",
            ],
        },
    ),
    (
        ("banque", "finance", "assurance"),
        {
            "common_risks": [
                "Données financières sensibles",
                "Profilage de solvabilité",
                "Lutte anti-blanchiment",
                "Transferts internationaux",
            ],
            "recommended_measures": [
                "Chiffrement de bout en bout",
                "Authentification forte",
                "Surveillance des transactions",
                "Encadrement des scores de crédit",
            ],
            "specific_requirements": [
                "Réglementation bancaire (DSP2)",
                "Obligations de conservation légales",
                "Déclarations obligatoires",
            ],
        },
    ),
]
DEFAULT_SECTOR_CONTEXT = {
    "common_risks": [
        "Accès non autorisé aux données",
        "Modification non contrôlée",
        "Perte ou destruction de données",
    ],
    "recommended_measures": [
        "Contrôle d'accès approprié",
        "Sauvegarde régulière",
        "Formation à la sécurité",
    ],
    "specific_requirements": [
        "Respect des principes RGPD",
        "Information transparente",
        "Respect des droits des personnes",
    ],
}

# Gamification
XP_PER_LEVEL = 100

# Default diagnostic questionnaire seeded into an empty database.
DEFAULT_DIAGNOSTIC_QUESTIONS = [
    {
        "question": "Avez-vous désigné un responsable de la protection des données (interne ou DPO) ?",
        "category": "Gouvernance",
        "action_plan_no": "Désigner un référent RGPD ou un DPO et formaliser sa mission.",
        "risk_level_no": "elevé",
        "action_plan_yes": "Vérifier que la mission du référent est documentée et connue des équipes.",
        "risk_level_yes": "faible",
    },
    {
        "question": "Tenez-vous un registre des activités de traitement à jour ?",
        "category": "Gouvernance",
        "action_plan_no": "Créer le registre des traitements prévu à l'article 30 du RGPD.",
        "risk_level_no": "critique",
        "action_plan_yes": "Planifier une revue annuelle du registre des traitements.",
        "risk_level_yes": "faible",
    },
    {
        "question": "Vos salariés ont-ils été sensibilisés au RGPD au cours des 12 derniers mois ?",
        "category": "Gouvernance",
        "action_plan_no": "Organiser une session de sensibilisation RGPD pour l'ensemble du personnel.",
        "risk_level_no": "moyen",
        "action_plan_yes": "",
        "risk_level_yes": "faible",
    },
    {
        "question": "Informez-vous les personnes de l'utilisation de leurs données (politique de confidentialité) ?",
        "category": "Droits des personnes",
        "action_plan_no": "Rédiger et publier une politique de confidentialité conforme aux articles 13 et 14.",
        "risk_level_no": "elevé",
        "action_plan_yes": "Vérifier que la politique mentionne toutes les finalités du registre.",
        "risk_level_yes": "faible",
    },
    {
        "question": "Disposez-vous d'une procédure pour traiter les demandes d'exercice de droits ?",
        "category": "Droits des personnes",
        "action_plan_no": "Mettre en place une procédure de traitement des demandes sous un mois.",
        "risk_level_no": "elevé",
        "action_plan_yes": "",
        "risk_level_yes": "faible",
    },
    {
        "question": "Recueillez-vous un consentement explicite pour les traceurs et la prospection ?",
        "category": "Droits des personnes",
        "action_plan_no": "Déployer un bandeau de consentement et tracer les preuves de consentement.",
        "risk_level_no": "elevé",
        "action_plan_yes": "",
        "risk_level_yes": "faible",
    },
    {
        "question": "Les accès aux données personnelles sont-ils protégés par des mots de passe robustes ?",
        "category": "Sécurité",
        "action_plan_no": "Définir une politique de mots de passe et activer l'authentification forte.",
        "risk_level_no": "critique",
        "action_plan_yes": "Envisager l'authentification à deux facteurs sur les outils sensibles.",
        "risk_level_yes": "faible",
    },
    {
        "question": "Réalisez-vous des sauvegardes régulières et testées de vos données ?",
        "category": "Sécurité",
        "action_plan_no": "Mettre en place des sauvegardes chiffrées et tester leur restauration.",
        "risk_level_no": "elevé",
        "action_plan_yes": "",
        "risk_level_yes": "faible",
    },
    {
        "question": "Disposez-vous d'une procédure de gestion des violations de données ?",
        "category": "Sécurité",
        "action_plan_no": "Formaliser la procédure de notification à la CNIL sous 72 heures.",
        "risk_level_no": "elevé",
        "action_plan_yes": "",
        "risk_level_yes": "faible",
    },
    {
        "question": "Vos contrats avec les sous-traitants contiennent-ils les clauses de l'article 28 ?",
        "category": "Sous-traitance",
        "action_plan_no": "Ajouter les clauses RGPD de l'article 28 aux contrats de sous-traitance.",
        "risk_level_no": "moyen",
        "action_plan_yes": "",
        "risk_level_yes": "faible",
    },
    {
        "question": "Transférez-vous des données personnelles hors de l'Union européenne ?",
        "category": "Sous-traitance",
        "action_plan_yes": "Encadrer les transferts par des clauses contractuelles types et une analyse d'impact des transferts.",
        "risk_level_yes": "elevé",
        "action_plan_no": "",
        "risk_level_no": "faible",
    },
]

# Default prompts seeded for each AI feature.
DEFAULT_PROMPTS = [
    {
        "name": "Assistant AIPD",
        "description": "Consignes générales pour l'assistance à la rédaction des AIPD",
        "category": "dpia",
        "prompt": "Appuyez-vous sur la méthodologie AIPD de la CNIL et les lignes directrices du CEPD.",
    },
    {
        "name": "Analyse des violations",
        "description": "Consignes pour l'analyse des violations de données",
        "category": "breach",
        "prompt": "Appliquez les lignes directrices 9/2022 de l'EDPB et le délai de 72 heures de l'article 33.",
    },
    {
        "name": "Assistant conversationnel",
        "description": "Consignes du chatbot DPO",
        "category": "chatbot",
        "prompt": "Restez concis et orientez vers les ressources de la CNIL lorsque c'est pertinent.",
    },
]

DEFAULT_LEARNING_MODULES = [
    {
        "title": "Les fondamentaux du RGPD",
        "description": "Principes, bases légales et vocabulaire essentiel",
        "category": "fondamentaux",
        "difficulty": "beginner",
        "content": "Le RGPD repose sur six principes: licéité, limitation des finalités, minimisation, exactitude, limitation de la conservation, sécurité.",
        "estimated_duration": 15,
        "xp_reward": 50,
    },
    {
        "title": "Gérer une violation de données",
        "description": "Qualifier, documenter et notifier une violation",
        "category": "securite",
        "difficulty": "intermediate",
        "content": "Toute violation doit être documentée. La notification à la CNIL intervient sous 72 heures en cas de risque pour les personnes.",
        "estimated_duration": 20,
        "xp_reward": 75,
    },
]

DEFAULT_ACHIEVEMENTS = [
    {
        "name": "Premier pas",
        "description": "Terminer un premier module",
        "icon": "rocket",
        "category": "learning",
        "criteria": {"type": "modules_completed", "count": 1},
        "xp_required": 0,
        "is_secret": False,
        "rarity": "common",
    },
    {
        "name": "Centurion",
        "description": "Atteindre 100 points d'expérience",
        "icon": "star",
        "category": "xp",
        "criteria": {"type": "xp", "amount": 100},
        "xp_required": 100,
        "is_secret": False,
        "rarity": "rare",
    },
    {
        "name": "Assidu",
        "description": "Apprendre 7 jours d'affilée",
        "icon": "flame",
        "category": "streak",
        "criteria": {"type": "streak", "days": 7},
        "xp_required": 0,
        "is_secret": True,
        "rarity": "epic",
    },
]
