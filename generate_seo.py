import os

from pitchfund import config
from pitchfund.seo import generate_robots_txt, generate_sitemap_xml

PUBLIC_DIR = os.path.join(os.getcwd(), 'public')

def run(public_dir: str = PUBLIC_DIR):
    os.makedirs(public_dir, exist_ok=True)
    with open(os.path.join(public_dir, 'robots.txt'), 'w') as f:
        f.write(generate_robots_txt(config.SITE_URL))
    with open(os.path.join(public_dir, 'sitemap.xml'), 'w') as f:
        f.write(generate_sitemap_xml(config.SITE_URL))
    print(f'✅ robots.txt and sitemap.xml written to {public_dir} for {config.SITE_URL}')

if __name__ == '__main__':
    run()
