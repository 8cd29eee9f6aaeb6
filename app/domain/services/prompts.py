TASK_ANSWER = "answer"
TASK_RECOMMEND = "recommend"
TASK_COMPARE = "compare"
TASK_FAQ = "faq"
TASK_SUGGESTIONS = "suggestions"
TASK_DESCRIPTION = "description"

# Returned instead of calling the LLM when retrieval finds nothing
NO_RESULTS = {
    TASK_ANSWER: "I couldn't find any products matching your query. Please try rephrasing or being more specific.",
    TASK_RECOMMEND: "I couldn't find suitable products for your request. Please provide more details.",
    TASK_COMPARE: "Could not find the specified products for comparison.",
    TASK_FAQ: "I couldn't find information about this product. Please check the product ID.",
    TASK_SUGGESTIONS: "I couldn't find suitable products. Please try different criteria.",
}

NO_PRODUCTS_TO_COMPARE = "Please provide product IDs to compare."

ANSWER_SYSTEM = (
    "You are a helpful e-commerce assistant. Answer customer questions about products\n"
    "based on the provided context. Be accurate, helpful, and conversational.\n\n"
    "If the context doesn't contain enough information to answer the question,\n"
    "politely say so and suggest how the customer can get more information.\n\n"
    "Always base your answers on the provided product information."
)


def answer_user(context: str, question: str) -> str:
    return (
        "Context (Product Information):\n"
        f"{context}\n"
        f"Customer Question: {question}\n\n"
        "Please provide a helpful answer based on the product information above."
    )


def recommend_prompt(query: str, preferences: str, context: str) -> str:
    return (
        "You are a helpful shopping assistant. Based on the customer's query and preferences,\n"
        "recommend suitable products and explain why they're good matches.\n\n"
        f"Customer Query: {query}\n\n"
        f"User Preferences: {preferences}\n\n"
        "Available Products:\n"
        f"{context}\n"
        "Provide a helpful recommendation with:\n"
        "1. Product names and key features\n"
        "2. Why each product matches the customer's needs\n"
        "3. Comparison if multiple products are suggested\n"
        "4. Any additional advice\n\n"
        "Keep the response conversational and helpful."
    )


def compare_prompt(context: str) -> str:
    return (
        "You are a product comparison expert. Compare the following products and provide\n"
        "a detailed analysis.\n\n"
        "Products to Compare:\n"
        f"{context}\n"
        "Provide a comprehensive comparison including:\n"
        "1. Key similarities and differences\n"
        "2. Pros and cons of each product\n"
        "3. Best use cases for each\n"
        "4. Value for money analysis\n"
        "5. Your recommendation based on different user needs\n\n"
        "Format the comparison in a clear, easy-to-read manner."
    )


def faq_prompt(context: str, question: str) -> str:
    return (
        "You are a knowledgeable product specialist. Answer the customer's question about\n"
        "the product based on the available information.\n\n"
        "Product Information:\n"
        f"{context}\n"
        f"Customer Question: {question}\n\n"
        "Provide a clear, accurate answer. If the information is not available in the product\n"
        "details, politely say so and suggest contacting customer support for specific details."
    )


def suggestions_prompt(profile: str, occasion: str, context: str) -> str:
    return (
        "You are a personal shopping advisor. Based on the user profile and occasion,\n"
        "suggest suitable products.\n\n"
        f"User Profile: {profile}\n\n"
        f"Occasion: {occasion}\n\n"
        "Available Products:\n"
        f"{context}\n"
        "Provide personalized shopping suggestions with:\n"
        "1. Product recommendations tailored to the user and occasion\n"
        "2. Why each product is suitable\n"
        "3. Styling or usage tips if applicable\n"
        "4. Budget considerations\n\n"
        "Be enthusiastic and helpful!"
    )


def description_prompt(
    name: str, category: str, description: str, features: str, price: float, rating: float, preferences: str,
) -> str:
    return (
        "You are a helpful product marketing assistant. Generate a personalized product description\n"
        "based on the following product information and user preferences.\n\n"
        "Product Information:\n"
        f"Name: {name}\n"
        f"Category: {category}\n"
        f"Original Description: {description}\n"
        f"Features: {features}\n"
        f"Price: ${price:.2f}\n"
        f"Rating: {rating} stars\n\n"
        f"User Preferences: {preferences}\n\n"
        "Create a compelling, personalized product description that highlights aspects most relevant\n"
        "to the user's preferences. Keep it concise (2-3 sentences) and engaging."
    )
