"""Curated baseline documents per jurisdiction.

These anchor each adapter when upstream feeds are unavailable.
"""

from datetime import date
from typing import List

from lextrust.schemas.ingestion import NormalizedDocument, SourceType


def ohada_uniform_acts() -> List[NormalizedDocument]:
    return [
        NormalizedDocument(
            title="Acte uniforme relatif au droit comptable et à l’information financière (AUDCIF)",
            jurisdiction_code="OHADA",
            source_type=SourceType.STATUTE,
            publisher="OHADA",
            canonical_url="https://www.ohada.org/index.php/fr/actes-uniformes/133-audcif",
            download_url="https://www.ohada.org/wp-content/uploads/2023/01/AUDCIF-2017.pdf",
            binding_language="fr",
            consolidated=True,
            adoption_date=date(2017, 1, 26),
            effective_date=date(2018, 1, 1),
            version_label="Réforme 2017",
            mime_type="application/pdf",
            residency_override="ohada",
        ),
        NormalizedDocument(
            title="Acte uniforme relatif au droit des sociétés commerciales et du GIE (AUSCGIE)",
            jurisdiction_code="OHADA",
            source_type=SourceType.STATUTE,
            publisher="OHADA",
            canonical_url="https://www.ohada.org/index.php/fr/actes-uniformes/130-aus-cgie",
            download_url="https://www.ohada.org/wp-content/uploads/2023/01/AUSCGIE-2014.pdf",
            binding_language="fr",
            consolidated=True,
            adoption_date=date(2014, 1, 30),
            effective_date=date(2014, 5, 5),
            version_label="Révision 2014",
            mime_type="application/pdf",
            residency_override="ohada",
        ),
        NormalizedDocument(
            title="Acte uniforme sur les procédures collectives d’apurement du passif (AUPCAP)",
            jurisdiction_code="OHADA",
            source_type=SourceType.STATUTE,
            publisher="OHADA",
            canonical_url="https://www.ohada.org/index.php/fr/actes-uniformes/135-aupcap",
            download_url="https://www.ohada.org/wp-content/uploads/2023/01/AUPCAP-2015.pdf",
            binding_language="fr",
            consolidated=True,
            adoption_date=date(2015, 9, 10),
            effective_date=date(2015, 12, 24),
            version_label="Révision 2015",
            mime_type="application/pdf",
            residency_override="ohada",
        ),
        NormalizedDocument(
            title="Acte uniforme portant organisation des sûretés (AUS)",
            jurisdiction_code="OHADA",
            source_type=SourceType.STATUTE,
            publisher="OHADA",
            canonical_url="https://www.ohada.org/index.php/fr/actes-uniformes/128-aus",
            download_url="https://www.ohada.org/wp-content/uploads/2023/01/AUS-2010.pdf",
            binding_language="fr",
            consolidated=True,
            adoption_date=date(2010, 12, 15),
            effective_date=date(2011, 5, 16),
            version_label="Révision 2010",
            mime_type="application/pdf",
            residency_override="ohada",
        ),
    ]


def eu_regulations() -> List[NormalizedDocument]:
    return [
        NormalizedDocument(
            title="Règlement (UE) n° 1215/2012 - Bruxelles I bis",
            jurisdiction_code="EU",
            source_type=SourceType.REGULATION,
            publisher="EUR-Lex",
            canonical_url="https://eur-lex.europa.eu/eli/reg/2012/1215/oj",
            download_url="https://eur-lex.europa.eu/legal-content/FR/TXT/PDF/?uri=CELEX:32012R1215",
            binding_language="fr",
            consolidated=True,
            adoption_date=date(2012, 12, 12),
            effective_date=date(2015, 1, 10),
            version_label="Texte intégral JOUE",
            mime_type="application/pdf",
            residency_override="eu",
        ),
        NormalizedDocument(
            title="Directive (UE) 2019/770 relative aux contenus et services numériques",
            jurisdiction_code="EU",
            source_type=SourceType.REGULATION,
            publisher="EUR-Lex",
            canonical_url="https://eur-lex.europa.eu/eli/dir/2019/770/oj",
            download_url="https://eur-lex.europa.eu/legal-content/FR/TXT/PDF/?uri=CELEX:32019L0770",
            binding_language="fr",
            consolidated=False,
            adoption_date=date(2019, 5, 20),
            effective_date=date(2019, 6, 11),
            version_label="Texte original",
            mime_type="application/pdf",
            residency_override="eu",
        ),
    ]


def france_core() -> List[NormalizedDocument]:
    return [
        NormalizedDocument(
            title="Code civil - Article 1240",
            jurisdiction_code="FR",
            source_type=SourceType.STATUTE,
            publisher="Légifrance",
            canonical_url="https://www.legifrance.gouv.fr/codes/article_lc/LEGIARTI000006417902",
            download_url="https://www.legifrance.gouv.fr/download_txt.do?cidTexte=LEGITEXT000006070721",
            binding_language="fr",
            consolidated=True,
            effective_date=date.today(),
            version_label="Consolidation courante",
            mime_type="text/plain",
            residency_override="eu",
        ),
        NormalizedDocument(
            title="Cour de cassation, chambre sociale, 25 novembre 2015, n° 14-21.125",
            jurisdiction_code="FR",
            source_type=SourceType.CASE,
            publisher="Cour de cassation",
            canonical_url="https://www.courdecassation.fr/decision/58fc23dd302bf94d3f8b45c6",
            download_url="https://www.courdecassation.fr/decision/58fc23dd302bf94d3f8b45c6",
            binding_language="fr",
            consolidated=False,
            effective_date=date(2015, 11, 25),
            version_label="Arrêt intégral",
            residency_override="eu",
        ),
    ]


def belgium_core() -> List[NormalizedDocument]:
    return [
        NormalizedDocument(
            title="Code de droit économique - Livre VI (pratiques du marché et protection du consommateur)",
            jurisdiction_code="BE",
            source_type=SourceType.STATUTE,
            publisher="Service Public Fédéral Justice",
            canonical_url="https://www.ejustice.just.fgov.be/eli/loi/2013/02/28/2013009095/justel",
            download_url=(
                "https://www.ejustice.just.fgov.be/cgi_loi/change_lg.pl"
                "?language=fr&la=F&cn=2013022809&table_name=loi"
            ),
            binding_language="fr",
            consolidated=True,
            version_label="Consolidation Justel",
            residency_override="eu",
        ),
        NormalizedDocument(
            title="Cour de cassation (Belgique) - Arrêt du 4 septembre 2020 (C.19.0375.F)",
            jurisdiction_code="BE",
            source_type=SourceType.CASE,
            publisher="Cour de cassation de Belgique",
            canonical_url="https://www.courdecassation.be/id/20200904C190375F",
            download_url="https://www.courdecassation.be/id/20200904C190375F",
            binding_language="fr",
            consolidated=False,
            effective_date=date(2020, 9, 4),
            version_label="Arrêt complet",
            residency_override="eu",
        ),
    ]


def luxembourg_core() -> List[NormalizedDocument]:
    return [
        NormalizedDocument(
            title="Code du travail luxembourgeois",
            jurisdiction_code="LU",
            source_type=SourceType.STATUTE,
            publisher="Legilux",
            canonical_url="https://legilux.public.lu/eli/etat/leg/code/travail/20230605",
            download_url="https://legilux.public.lu/eli/etat/leg/code/travail/20230605",
            binding_language="fr",
            consolidated=True,
            version_label="Consolidation Legilux",
            residency_override="eu",
        ),
    ]


def monaco_core() -> List[NormalizedDocument]:
    return [
        NormalizedDocument(
            title="Code civil monégasque - Article 1229",
            jurisdiction_code="MC",
            source_type=SourceType.STATUTE,
            publisher="Gouvernement Princier de Monaco",
            canonical_url="https://legimonaco.mc/305/legismclois.nsf/CodeTextes/2.1.5.1.079",
            download_url="https://legimonaco.mc/305/legismclois.nsf/CodeTextes/2.1.5.1.079",
            binding_language="fr",
            consolidated=True,
            version_label="Consolidation LégiMonaco",
            residency_override="eu",
        ),
    ]


def switzerland_core() -> List[NormalizedDocument]:
    atf_url = (
        "https://www.bger.ch/ext/eurospider/live/fr/php/aza/http/index.php"
        "?highlight_docid=aza://aza://04-11-2019-4A_138-2019-fr"
    )
    return [
        NormalizedDocument(
            title="Code des obligations suisse (CO)",
            jurisdiction_code="CH",
            source_type=SourceType.STATUTE,
            publisher="Confédération suisse",
            canonical_url="https://www.fedlex.admin.ch/eli/cc/27/317_321_377/fr",
            download_url="https://www.fedlex.admin.ch/eli/cc/27/317_321_377/fr",
            binding_language="fr",
            consolidated=True,
            version_label="Fedlex consolidation",
            residency_override="ch",
        ),
        NormalizedDocument(
            title="Tribunal fédéral suisse - ATF 145 III 433",
            jurisdiction_code="CH",
            source_type=SourceType.CASE,
            publisher="Tribunal fédéral",
            canonical_url=atf_url,
            download_url=atf_url,
            binding_language="fr",
            consolidated=False,
            effective_date=date(2019, 11, 4),
            version_label="Arrêt intégral TF",
            residency_override="ch",
        ),
    ]


def quebec_core() -> List[NormalizedDocument]:
    return [
        NormalizedDocument(
            title="Code civil du Québec (C.c.Q.)",
            jurisdiction_code="CA-QC",
            source_type=SourceType.STATUTE,
            publisher="LégisQuébec",
            canonical_url="https://legisquebec.gouv.qc.ca/fr/ShowDoc/cs/CCQ-1991",
            download_url="https://legisquebec.gouv.qc.ca/fr/ShowDoc/cs/CCQ-1991",
            binding_language="fr",
            consolidated=True,
            version_label="Consolidation officielle",
            residency_override="ca",
        ),
        NormalizedDocument(
            title="Cour d’appel du Québec - 2019 QCCA 373",
            jurisdiction_code="CA-QC",
            source_type=SourceType.CASE,
            publisher="CanLII",
            canonical_url="https://canlii.ca/t/hz3b8",
            download_url="https://canlii.ca/t/hz3b8",
            binding_language="fr",
            consolidated=False,
            effective_date=date(2019, 3, 13),
            version_label="Texte intégral CanLII",
            residency_override="ca",
        ),
    ]


def maghreb_gazettes() -> List[NormalizedDocument]:
    return [
        NormalizedDocument(
            title="Bulletin Officiel du Royaume du Maroc - édition de traduction officielle",
            jurisdiction_code="MA",
            source_type=SourceType.GAZETTE,
            publisher="Secrétariat Général du Gouvernement",
            canonical_url="https://www.sgg.gov.ma/Portals/0/BO/2024/bo_7244_fr.pdf",
            download_url="https://www.sgg.gov.ma/Portals/0/BO/2024/bo_7244_fr.pdf",
            binding_language="fr",
            consolidated=False,
            language_note="Traduction officielle en français; vérifier l’édition arabe pour force obligatoire.",
            version_label="Édition 7244",
            mime_type="application/pdf",
            residency_override="maghreb",
        ),
        NormalizedDocument(
            title="Journal Officiel de la République Tunisienne (JORT) n° 37/2024",
            jurisdiction_code="TN",
            source_type=SourceType.GAZETTE,
            publisher="Imprimerie Officielle de la République Tunisienne",
            canonical_url="https://www.iort.gov.tn/WD120AWP/WD120Awp.exe/CONNECT/SIGP",
            download_url="https://www.iort.gov.tn/WD120AWP/WD120Awp.exe/CONNECT/SIGP",
            binding_language="ar",
            consolidated=False,
            language_note="Version arabe juridiquement contraignante; version française informative.",
            version_label="Édition 37/2024",
            residency_override="maghreb",
        ),
        NormalizedDocument(
            title="Journal officiel de la République Algérienne Démocratique et Populaire - 2024-03-20",
            jurisdiction_code="DZ",
            source_type=SourceType.GAZETTE,
            publisher="Secrétariat Général du Gouvernement algérien",
            canonical_url="https://www.joradp.dz/FTP/JO-FRANCAIS/2024/F2024020.pdf",
            download_url="https://www.joradp.dz/FTP/JO-FRANCAIS/2024/F2024020.pdf",
            binding_language="ar",
            consolidated=False,
            language_note="Seule la version arabe fait foi; cette version française est fournie pour référence.",
            version_label="JO n°20/2024",
            mime_type="application/pdf",
            residency_override="maghreb",
        ),
    ]
