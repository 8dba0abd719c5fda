from app.models.schemas import Intent

SYSTEM_PROMPT = "Você é um assistente financeiro."

# Label the model is asked to answer with, and an example message for each.
INTENT_LABELS: dict[Intent, tuple[str, str]] = {
    Intent.EXPENSE: ("adicionar uma despesa", "camisa 20"),
    Intent.INCOME: ("adicionar uma receita", "salário 1850"),
    Intent.SET_BALANCE: ("definir o saldo", "adicionar 1000 reais"),
    Intent.SET_LIMIT: ("definir o limite de gastos", "limite 500"),
    Intent.REPORT: ("gerar um relatório", "relatório do mês"),
    Intent.HELP: ("pedir ajuda", "como usar"),
    Intent.SHOW_BALANCE: ("ver saldo", "mostrar saldo"),
    Intent.LIST_TRANSACTIONS: ("listar transações", "listar transações"),
    Intent.DELETE_ALL: ("apagar todas as transações", "apagar tudo"),
    Intent.ADD_CATEGORY: ("adicionar uma categoria", "adicionar categoria transporte"),
    Intent.LIST_CATEGORIES: ("listar categorias", "listar categorias"),
    Intent.ENABLE_REMINDER: ("ativar modo lembrete", "ativar modo lembrete"),
    Intent.DISABLE_REMINDER: ("desativar modo lembrete", "desativar modo lembrete"),
}

UNCERTAIN_LABEL = "incerto"

INTENT_KEY = "intenção"
DESCRIPTION_KEY = "descrição"
AMOUNT_KEY = "valor"
NAME_KEY = "nome"


def build_intent_prompt(message: str) -> str:
    options = "\n".join(
        f'- {label} (ex.: "{example}")' for label, example in INTENT_LABELS.values()
    )
    return f"""\
Analise a mensagem em português: "{message}". Determine a intenção do usuário entre:
{options}
Para despesas, receitas e adicionar categoria, extraia a descrição, valor ou nome da categoria.
Responda exatamente no formato, uma chave por linha:
{INTENT_KEY}: [intenção]
{DESCRIPTION_KEY}: [descrição]
{AMOUNT_KEY}: [valor]
{NAME_KEY}: [nome da categoria]
Use a intenção exatamente como escrita na lista acima.
Se não for possível determinar, responda "{INTENT_KEY}: {UNCERTAIN_LABEL}"."""


def build_category_prompt(description: str, categories: list[str]) -> str:
    available = ", ".join(categories) if categories else "nenhuma"
    return (
        f"Categorize o item: '{description}'. Categorias disponíveis: {available}. "
        "Se nenhuma for adequada, sugira uma nova categoria. "
        "Responda apenas com o nome da categoria ou a sugestão."
    )
