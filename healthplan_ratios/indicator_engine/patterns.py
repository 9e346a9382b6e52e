"""
Category pattern table.

Ordered (category, patterns) pairs used by the classifier. Order matters on
both levels: the first category whose pattern is contained in a normalized
description wins, and inside a category patterns are tried in the order
listed. Reordering entries here changes which category a description lands
in, and with it every published ratio.

Phrases are kept as they appear in the operators' statements (Portuguese,
with accents); they are normalized once when the table is built.
"""

from typing import Tuple

from healthplan_ratios.indicator_engine.models import Category
from healthplan_ratios.indicator_engine.normalization import normalize_text


CATEGORY_PATTERNS: Tuple[Tuple[Category, Tuple[str, ...]], ...] = (
    # Revenue
    (Category.REVENUE_CONTRIBUTIONS, (
        "receita de contraprestações",
        "contraprestações pecuniárias",
        "receita de mensalidades",
        "receita operacional",
        "contraprestação",
        "mensalidade",
        "receitas de contraprestacoes",
        "contraprestacoes",
    )),
    (Category.TOTAL_REVENUE, (
        "receita total",
        "receita operacional total",
        "receitas totais",
        "total das receitas",
        "receita bruta",
        "faturamento",
        "receitas operacionais",
    )),
    (Category.FINANCIAL_REVENUE, (
        "receitas financeiras",
        "receita financeira",
        "aplicações financeiras",
        "rendimento de aplicações",
        "juros recebidos",
        "resultado financeiro positivo",
        "rendimento financeiro",
    )),
    # Expenses
    (Category.MEDICAL_EXPENSE, (
        "eventos indenizáveis líquidos",
        "despesas médicas",
        "despesas com eventos",
        "sinistralidade",
        "despesas assistenciais",
        "custos assistenciais",
        "eventos médicos",
        "despesas com sinistros",
        "custos médicos",
        "eventos indenizaveis",
    )),
    (Category.ADMIN_EXPENSE, (
        "despesas administrativas",
        "despesas gerais",
        "despesas operacionais administrativas",
        "outras despesas administrativas",
        "despesas de administração",
        "custos administrativos",
        "despesas admin",
    )),
    (Category.COMMERCIAL_EXPENSE, (
        "despesas comerciais",
        "despesas de comercialização",
        "despesas com vendas",
        "comissões de vendas",
        "marketing",
        "publicidade",
        "despesas de vendas",
    )),
    (Category.FINANCIAL_EXPENSE, (
        "despesas financeiras",
        "despesa financeira",
        "encargos financeiros",
        "juros pagos",
        "resultado financeiro negativo",
        "custos financeiros",
    )),
    # Equity and results
    (Category.EQUITY, (
        "patrimônio líquido",
        "capital social",
        "reservas",
        "total do patrimônio líquido",
        "patrimonio liquido",
        "pl",
    )),
    (Category.NET_INCOME, (
        "lucro líquido",
        "resultado líquido",
        "resultado do exercício",
        "lucro do período",
        "lucro liquido",
        "ll",
        "resultado liquido",
    )),
    # Assets and liabilities
    (Category.CURRENT_ASSETS, (
        "ativo circulante",
        "total do ativo circulante",
        "disponibilidades",
        "aplicações",
        "caixa e equivalentes",
        "ac",
    )),
    (Category.CURRENT_LIABILITIES, (
        "passivo circulante",
        "total do passivo circulante",
        "eventos a pagar",
        "obrigações correntes",
        "pc",
    )),
    (Category.THIRD_PARTY_CAPITAL, (
        "capital de terceiros",
        "passivo total",
        "total do passivo",
        "empréstimos e financiamentos",
        "dívidas",
        "financiamentos",
    )),
    # Specific accounts
    (Category.RECEIVABLES, (
        "contraprestações a receber",
        "mensalidades a receber",
        "créditos de contraprestações",
        "contas a receber",
        "clientes",
    )),
    (Category.PAYABLES_EVENTS, (
        "eventos a pagar",
        "provisão para eventos a liquidar",
        "despesas médicas a pagar",
        "provisões técnicas",
        "fornecedores médicos",
    )),
)

# Declared priority order of the pattern-owning categories
CATEGORY_ORDER: Tuple[Category, ...] = tuple(category for category, _ in CATEGORY_PATTERNS)

# Same table with every pattern already normalized
NORMALIZED_PATTERNS: Tuple[Tuple[Category, Tuple[str, ...]], ...] = tuple(
    (category, tuple(normalize_text(pattern) for pattern in patterns))
    for category, patterns in CATEGORY_PATTERNS
)


def patterns_for(category: Category) -> Tuple[str, ...]:
    """Return the normalized patterns owned by a category (empty for UNCATEGORIZED)."""
    for owner, patterns in NORMALIZED_PATTERNS:
        if owner == category:
            return patterns
    return ()
