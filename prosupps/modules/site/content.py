"""Static marketing copy for the home, about and contact pages."""

FEATURES = [
    {
        "title": "High Quality Ingredients",
        "description": "Made with premium whey protein isolate for maximum protein content and minimal fats.",
    },
    {
        "title": "Fast Absorption",
        "description": "Specially formulated for quick absorption and rapid muscle recovery after workouts.",
    },
    {
        "title": "Great Taste",
        "description": "Available in multiple delicious flavors that you'll love to drink every day.",
    },
]

BENEFITS = [
    {"title": "Muscle Growth", "description": "Supports lean muscle growth and maintenance with high-quality protein."},
    {"title": "Quick Recovery", "description": "Speeds up post-workout recovery and reduces muscle soreness."},
    {"title": "Easy Digestion", "description": "Easily digestible formula that's gentle on your stomach."},
    {"title": "Immune Support", "description": "Contains essential nutrients that support immune system function."},
    {"title": "Energy Boost", "description": "Provides sustained energy for better workout performance."},
    {"title": "Weight Management", "description": "Helps maintain healthy weight by supporting lean muscle mass."},
]

TESTIMONIALS = [
    {
        "text": "I've tried many protein supplements, but this is by far the best. Great taste and amazing results!",
        "name": "John D.",
        "title": "Fitness Enthusiast",
    },
    {
        "text": "The quality is outstanding. I've seen significant improvements in my recovery time.",
        "name": "Sarah M.",
        "title": "Personal Trainer",
    },
    {
        "text": "Delicious flavors and mixes perfectly. It's now an essential part of my daily routine.",
        "name": "Mike R.",
        "title": "Amateur Athlete",
    },
]

ABOUT_VALUES = [
    {
        "title": "Our Mission",
        "description": "To provide the highest quality protein supplements that help our customers achieve "
                       "their fitness goals and maintain a healthy lifestyle.",
    },
    {
        "title": "Quality First",
        "description": "We source only the finest ingredients and maintain strict quality control throughout "
                       "our manufacturing process to ensure product excellence.",
    },
    {
        "title": "Customer Focus",
        "description": "Your success is our success. We're dedicated to supporting your fitness journey with "
                       "expert advice and premium products.",
    },
]

ABOUT_STORY = [
    "Founded by fitness enthusiasts, ProSupps began with a simple mission: to create the highest quality whey "
    "protein supplements that deliver real results. We understand the importance of proper nutrition in achieving "
    "fitness goals, which is why we've dedicated ourselves to developing products that meet the highest standards "
    "of quality and effectiveness.",
    "Today, we continue to innovate and improve our products, working closely with nutrition experts and athletes "
    "to ensure we're delivering the best possible supplements to our customers. Our commitment to quality and "
    "customer satisfaction remains at the heart of everything we do.",
]
